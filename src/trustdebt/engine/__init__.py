"""Pure domain computation: every function here is deterministic and free of I/O
except ``corpus.load_corpus`` and ``config.load_config``."""

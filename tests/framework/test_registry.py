"""Tests for trustdebt.framework.registry — stage registration and lookup."""

from __future__ import annotations

import pytest

from trustdebt.core.errors import StageNotFoundError
from trustdebt.framework.registry import clear_registry, get_stage, list_stages, register_stage, stage_names
from trustdebt.framework.stages import Stage

BUILTIN = ["taxonomy", "indexer", "matrix", "distribution", "grading", "alignment", "audit"]


class TestBuiltinStages:
    def test_seven_stages_in_order(self):
        assert [s.name for s in list_stages()] == BUILTIN
        assert [s.index for s in list_stages()] == [1, 2, 3, 4, 5, 6, 7]

    def test_get_stage(self):
        assert get_stage("matrix").index == 3

    def test_unknown_stage(self):
        with pytest.raises(StageNotFoundError) as exc:
            get_stage("rendering")
        assert "taxonomy" in str(exc.value)

    def test_clear_registry_empties_table(self, isolated_stage_registry):
        list_stages()
        clear_registry()
        assert stage_names() == []


class TestRegisterStage:
    def test_register_sets_name_and_index(self, isolated_stage_registry):
        @register_stage("extra", 101)
        class ExtraStage(Stage):
            description = "test stage"

            def run(self):
                return {}

        assert ExtraStage.name == "extra"
        assert ExtraStage.index == 101
        assert "extra" in stage_names()

    def test_duplicate_name_rejected(self, isolated_stage_registry):
        @register_stage("dup", 102)
        class First(Stage):
            def run(self):
                return {}

        with pytest.raises(ValueError, match="already registered"):

            @register_stage("dup", 103)
            class Second(Stage):
                def run(self):
                    return {}

    def test_duplicate_index_rejected(self, isolated_stage_registry):
        @register_stage("one", 104)
        class One(Stage):
            def run(self):
                return {}

        with pytest.raises(ValueError, match="already used"):

            @register_stage("two", 104)
            class Two(Stage):
                def run(self):
                    return {}

    def test_custom_stage_sorted_with_builtins(self, isolated_stage_registry):
        @register_stage("late", 105)
        class Late(Stage):
            def run(self):
                return {}

        names = [s.name for s in list_stages()]
        assert names[:7] == BUILTIN
        assert names[-1] == "late"

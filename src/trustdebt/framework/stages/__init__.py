"""Stage framework - base classes for pipeline stages."""

from trustdebt.framework.stages.base import Stage, StageContext, StageResult, StageStatus

__all__ = ["Stage", "StageContext", "StageResult", "StageStatus"]

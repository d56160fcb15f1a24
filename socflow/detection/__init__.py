from socflow.detection.job import DetectionJob, DetectionRunResult
from socflow.detection.navigation import LoopScheduler, ManualScheduler

__all__ = ["DetectionJob", "DetectionRunResult", "LoopScheduler", "ManualScheduler"]

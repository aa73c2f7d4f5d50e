"""Background thread for running the grouping engine."""

from PySide6.QtCore import QThread, Signal

from .engine import run_grouping
from .models import GroupingRequest, GroupingResult


class GroupingThread(QThread):
    """Thread for running one grouping request off the caller's thread."""

    finished_signal = Signal(object)  # GroupingResult

    def __init__(self, request: GroupingRequest):
        super().__init__()
        self.request = request
        self.result: GroupingResult | None = None

    def run(self):
        # run_grouping never raises, so a result is always emitted
        self.result = run_grouping(self.request)
        self.finished_signal.emit(self.result)

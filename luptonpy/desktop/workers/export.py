from dataclasses import dataclass
import numpy as np
from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot
from luptonpy.features.stretch.models import EngineParameters
from luptonpy.infrastructure.image_io import TiffImageSink
from luptonpy.services.export.executor import FullResolutionExecutor, output_name


@dataclass(frozen=True)
class ExportTask:
    """
    Data for one full-resolution run.
    """

    image: np.ndarray
    params: EngineParameters
    source_name: str
    output_dir: str


class ExportWorker(QObject):
    """
    Runs the full-resolution stretch off the UI thread.
    """

    started = pyqtSignal(str)  # source name
    finished = pyqtSignal(str, float)  # output path, elapsed seconds
    error = pyqtSignal(str)

    def __init__(self) -> None:
        super().__init__()
        self._executor = FullResolutionExecutor()

    @pyqtSlot(ExportTask)
    def run(self, task: ExportTask) -> None:
        self.started.emit(task.source_name)
        try:
            result = self._executor.execute(task.image, task.params)
            sink = TiffImageSink(task.output_dir)
            path = sink.write(output_name(task.source_name), result.image)
            self.finished.emit(path, result.elapsed_s)
        except Exception as e:
            self.error.emit(str(e))

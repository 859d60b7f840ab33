from enum import Enum, auto
from dataclasses import dataclass
from typing import Optional
import numpy as np


class ToolMode(Enum):
    NONE = auto()
    SAMPLE_BLACK = auto()


@dataclass
class AppState:
    """
    Desktop session state shared by the controller and views.
    """

    current_file_path: Optional[str] = None
    source_image: Optional[np.ndarray] = None
    is_processing: bool = False
    active_tool: ToolMode = ToolMode.NONE
    export_dir: Optional[str] = None

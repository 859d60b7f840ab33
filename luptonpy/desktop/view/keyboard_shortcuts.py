from PyQt6.QtGui import QShortcut, QKeySequence


def setup_keyboard_shortcuts(window) -> None:
    """Defines global application hotkeys for the main window."""
    controller = window.controller
    sidebar = window.sidebar

    # View
    QShortcut(QKeySequence("+"), window, controller.zoom_in)
    QShortcut(QKeySequence("="), window, controller.zoom_in)
    QShortcut(QKeySequence("-"), window, controller.zoom_out)
    QShortcut(QKeySequence("F"), window, controller.fit_to_window)

    # Tools
    QShortcut(QKeySequence("A"), window, controller.auto_black_point)
    QShortcut(QKeySequence("S"), window, lambda: sidebar.sample_black_btn.toggle())
    QShortcut(QKeySequence("Ctrl+R"), window, controller.reset_parameters)

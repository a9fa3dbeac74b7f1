"""Sidebar and theme state. Synchronous, never touches the network."""
from papaloma.core.store import StateContainer

DARK_CLASS = 'dark'


class UIStore(StateContainer):
    initial_state = {
        'sidebar_open': False,       # mobile overlay
        'sidebar_collapsed': False,  # desktop width
        'dark_mode': False,
    }

    def __init__(self, document_classes=None):
        super().__init__()
        # Class list of the document root; the theme is applied by adding 'dark'
        self.document_classes = document_classes if document_classes is not None else set()

    def toggle_sidebar(self):
        self.set(sidebar_open=not self.sidebar_open)

    def toggle_sidebar_collapse(self):
        self.set(sidebar_collapsed=not self.sidebar_collapsed)

    def set_sidebar_open(self, is_open):
        self.set(sidebar_open=bool(is_open))

    def toggle_dark_mode(self):
        dark_mode = not self.dark_mode
        if dark_mode:
            self.document_classes.add(DARK_CLASS)
        else:
            self.document_classes.discard(DARK_CLASS)
        self.set(dark_mode=dark_mode)

from django.test import SimpleTestCase

from papaloma.core.test_utils import capture_state_changes
from papaloma.ui.store import UIStore, DARK_CLASS


class UIStoreTests(SimpleTestCase):
    def setUp(self):
        self.document_classes = set()
        self.store = UIStore(self.document_classes)

    def test_initial_state(self):
        self.assertEqual(self.store.get_state(), {
            'sidebar_open': False,
            'sidebar_collapsed': False,
            'dark_mode': False,
        })

    def test_toggle_sidebar(self):
        self.store.toggle_sidebar()
        self.assertTrue(self.store.sidebar_open)
        self.store.toggle_sidebar()
        self.assertFalse(self.store.sidebar_open)

    def test_set_sidebar_open(self):
        self.store.set_sidebar_open(True)
        self.assertTrue(self.store.sidebar_open)
        self.store.set_sidebar_open(is_open=False)
        self.assertFalse(self.store.sidebar_open)

    def test_toggle_collapse(self):
        with capture_state_changes(self.store) as changes:
            self.store.toggle_sidebar_collapse()
        self.assertTrue(self.store.sidebar_collapsed)
        self.assertEqual(changes, [{'sidebar_collapsed': True}])

    def test_dark_mode_applies_class(self):
        self.store.toggle_dark_mode()
        self.assertTrue(self.store.dark_mode)
        self.assertIn(DARK_CLASS, self.document_classes)

        self.store.toggle_dark_mode()
        self.assertFalse(self.store.dark_mode)
        self.assertNotIn(DARK_CLASS, self.document_classes)

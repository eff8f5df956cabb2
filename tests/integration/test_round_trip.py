import asyncio
import os
import threading
import time
import unittest
from tempfile import TemporaryDirectory
from unittest.mock import MagicMock

from i18n_syncer.google_sheets_client import Worksheet
from i18n_syncer.syncer import I18nSyncer


class FakeWorksheetStore:
    """In-memory replacement for GoogleSheetsClient."""

    def __init__(self, rows=None, delay=0.0):
        self.rows = [list(row) for row in (rows or [])]
        self.delay = delay
        self.active_writes = 0
        self.max_concurrent_writes = 0
        self._lock = threading.Lock()

    def initialize(self):
        return self

    def list_worksheets(self):
        return [Worksheet(title="Sheet1", sheet_id=0)]

    def get_all_rows(self, worksheet_name):
        return [list(row) for row in self.rows]

    def replace_all_rows(self, worksheet_name, rows):
        with self._lock:
            self.active_writes += 1
            self.max_concurrent_writes = max(self.max_concurrent_writes, self.active_writes)
        time.sleep(self.delay)
        self.rows = [list(row) for row in rows]
        with self._lock:
            self.active_writes -= 1
        return {"updatedCells": sum(len(row) for row in rows)}


class TestPullPushRoundTrip(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.tmp = TemporaryDirectory()
        self.translation_dir = os.path.join(self.tmp.name, "translations")

    def tearDown(self):
        self.tmp.cleanup()

    async def _round_trip(self, format_name):
        original = [
            ["Key", "en", "de", "_comment"],
            ["app.title", "Shop", "Laden", "Window title"],
            ["cart.empty", "Your cart is empty", "Ihr Warenkorb ist leer", ""],
            ["cart.note", "Line one\nLine two", "Zeile eins\nZeile zwei", "multi-line"],
            ["quote", "It's \"fine\"", "Es ist 'ok'", "back\\slash"],
        ]
        store = FakeWorksheetStore(original)
        syncer = I18nSyncer(store, translation_dir=self.translation_dir, show_progress=False)

        await syncer.pull(format_name=format_name)
        store.rows = []
        self.assertTrue(await syncer.push(format_name=format_name))
        return original, store.rows

    async def test_json_round_trip_reproduces_the_sheet(self):
        original, pushed = await self._round_trip("json")
        self.assertEqual(pushed, original)

    async def test_js_round_trip_reproduces_the_sheet(self):
        original, pushed = await self._round_trip("js")
        self.assertEqual(pushed, original)

    async def test_js_round_trip_with_namespaced_keys(self):
        original = [
            ["Key", "en", "fr"],
            ["common:title", "Home", "Accueil"],
            ["greet", "Hi", "Salut"],
        ]
        store = FakeWorksheetStore(original)
        syncer = I18nSyncer(store, translation_dir=self.translation_dir, show_progress=False)

        await syncer.pull(format_name="js")
        store.rows = []
        self.assertTrue(await syncer.push(format_name="js"))
        self.assertEqual(store.rows, original)


class TestConcurrentOperations(unittest.IsolatedAsyncioTestCase):

    async def test_pushes_to_the_same_worksheet_do_not_overlap(self):
        with TemporaryDirectory() as first_dir, TemporaryDirectory() as second_dir:
            for directory, value in ((first_dir, "first"), (second_dir, "second")):
                with open(os.path.join(directory, "en.json"), 'w', encoding='utf-8') as f:
                    f.write('{"k": "%s"}' % value)

            store = FakeWorksheetStore(delay=0.05)
            syncer = I18nSyncer(store, show_progress=False)

            results = await asyncio.gather(
                syncer.push(translation_dir=first_dir, sheet_name="Sheet1"),
                syncer.push(translation_dir=second_dir, sheet_name="Sheet1"),
            )

        self.assertEqual(results, [True, True])
        self.assertEqual(store.max_concurrent_writes, 1)
        self.assertIn(store.rows, ([["Key", "en"], ["k", "first"]], [["Key", "en"], ["k", "second"]]))

    async def test_remote_errors_propagate_from_push(self):
        with TemporaryDirectory() as directory:
            with open(os.path.join(directory, "en.json"), 'w', encoding='utf-8') as f:
                f.write('{"k": "v"}')
            client = MagicMock()
            client.list_worksheets.side_effect = ConnectionError("offline")
            syncer = I18nSyncer(client, translation_dir=directory, show_progress=False)

            with self.assertRaises(ConnectionError):
                await syncer.push()


class TestSyncerAcrossEventLoops(unittest.TestCase):

    def test_instance_is_reusable_under_a_new_event_loop(self):
        with TemporaryDirectory() as directory:
            store = FakeWorksheetStore([["Key", "en"], ["k", "v"]], delay=0.01)
            syncer = I18nSyncer(store, translation_dir=directory, show_progress=False)

            async def contended_pulls():
                await asyncio.gather(syncer.pull(), syncer.pull())

            asyncio.run(contended_pulls())
            self.assertEqual(syncer._locks, {})

            asyncio.run(contended_pulls())
            self.assertTrue(asyncio.run(syncer.push()))
            self.assertEqual(syncer._locks, {})


if __name__ == '__main__':
    unittest.main()

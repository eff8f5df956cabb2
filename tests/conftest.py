import json
import logging
import os
from unittest.mock import MagicMock

import pytest

from i18n_syncer.google_sheets_client import Worksheet


@pytest.fixture(autouse=True)
def quiet_package_logger():
    """Route package log records to pytest's caplog instead of handlers left by setup_logger."""
    logger = logging.getLogger("i18n_syncer")
    saved_handlers = list(logger.handlers)
    saved_propagate = logger.propagate
    saved_level = logger.level
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.DEBUG)
    yield
    logger.handlers[:] = saved_handlers
    logger.propagate = saved_propagate
    logger.setLevel(saved_level)


@pytest.fixture
def sheets_client():
    """A stand-in for GoogleSheetsClient with one worksheet named 'Translations'."""
    client = MagicMock()
    client.list_worksheets.return_value = [
        Worksheet(title="Translations", sheet_id=0),
        Worksheet(title="Archive", sheet_id=1),
    ]
    client.get_all_rows.return_value = []
    client.replace_all_rows.return_value = {"updatedCells": 0}
    return client


@pytest.fixture
def translation_dir(tmp_path):
    path = tmp_path / "translations"
    path.mkdir()
    return str(path)


@pytest.fixture
def write_json_file(translation_dir):
    """Write a dict as <translation_dir>/<name> and return the path."""
    def _write(name, content):
        file_path = os.path.join(translation_dir, name)
        with open(file_path, 'w', encoding='utf-8') as f:
            if isinstance(content, str):
                f.write(content)
            else:
                json.dump(content, f, ensure_ascii=False, indent=2)
        return file_path
    return _write

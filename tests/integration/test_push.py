import asyncio
import logging
import os

import pytest

from i18n_syncer.errors import WorksheetNotFoundError
from i18n_syncer.syncer import I18nSyncer


@pytest.fixture
def syncer(sheets_client, translation_dir):
    return I18nSyncer(sheets_client, translation_dir=translation_dir, show_progress=False)


def _pushed_rows(sheets_client):
    sheets_client.replace_all_rows.assert_called_once()
    worksheet, rows = sheets_client.replace_all_rows.call_args[0]
    return worksheet, rows


def test_push_merges_keys_from_all_languages(syncer, sheets_client, write_json_file):
    write_json_file("en.json", {"a": "1", "b": "2"})
    write_json_file("fr.json", {"b": "2", "c": "3"})

    assert asyncio.run(syncer.push()) is True

    worksheet, rows = _pushed_rows(sheets_client)
    assert worksheet == "Translations"
    assert rows == [
        ["Key", "en", "fr"],
        ["a", "1", ""],
        ["b", "2", "2"],
        ["c", "", "3"],
    ]


def test_push_orders_columns(syncer, sheets_client, write_json_file):
    for code in ("zh", "_notes", "en", "de"):
        write_json_file(f"{code}.json", {"k": code})

    asyncio.run(syncer.push())

    _, rows = _pushed_rows(sheets_client)
    assert rows[0] == ["Key", "en", "de", "zh", "_notes"]
    assert rows[1] == ["k", "en", "de", "zh", "_notes"]


def test_push_with_other_main_language(syncer, sheets_client, write_json_file):
    write_json_file("en.json", {"x": "X", "shared": "S"})
    write_json_file("de.json", {"shared": "S", "y": "Y"})

    asyncio.run(syncer.push(main_language="de"))

    _, rows = _pushed_rows(sheets_client)
    assert rows[0] == ["Key", "de", "en"]
    assert [row[0] for row in rows[1:]] == ["shared", "y", "x"]


def test_push_flattens_nested_json_and_converts_values(syncer, sheets_client, write_json_file):
    write_json_file("en.json", {
        "menu": {"file": {"open": "Open"}},
        "lines": "one\\ntwo",
        "count": 3,
        "tags": ["a", "b"],
        "missing": None,
    })

    asyncio.run(syncer.push())

    _, rows = _pushed_rows(sheets_client)
    assert rows[1:] == [
        ["menu.file.open", "Open"],
        ["lines", "one\ntwo"],
        ["count", "3"],
        ["tags", '["a","b"]'],
        ["missing", ""],
    ]


def test_push_js_modules(syncer, sheets_client, translation_dir):
    with open(os.path.join(translation_dir, "en.js"), 'w', encoding='utf-8') as f:
        f.write("export default {\n  nav: {\n    home: 'Home',\n  },\n  quote: 'It\\'s',\n};\n")
    with open(os.path.join(translation_dir, "en.json"), 'w', encoding='utf-8') as f:
        f.write('{"ignored": "because the format is js"}')

    asyncio.run(syncer.push(format_name="js"))

    _, rows = _pushed_rows(sheets_client)
    assert rows == [["Key", "en"], ["nav.home", "Home"], ["quote", "It's"]]


def test_push_skips_unparseable_files(syncer, sheets_client, write_json_file, caplog):
    write_json_file("en.json", {"a": "A"})
    write_json_file("fr.json", '{"a": ')
    write_json_file("de.json", '["not", "an", "object"]')

    with caplog.at_level(logging.WARNING, logger="i18n_syncer"):
        assert asyncio.run(syncer.push()) is True

    _, rows = _pushed_rows(sheets_client)
    assert rows == [["Key", "en"], ["a", "A"]]
    assert "Could not read fr.json" in caplog.text
    assert "Could not read de.json" in caplog.text


def test_push_skips_files_that_are_not_utf8(syncer, sheets_client, translation_dir, write_json_file):
    write_json_file("en.json", {"a": "A"})
    with open(os.path.join(translation_dir, "fr.json"), 'wb') as f:
        f.write(b'{"a": "\xff\xfe"}')

    assert asyncio.run(syncer.push()) is True

    _, rows = _pushed_rows(sheets_client)
    assert rows[0] == ["Key", "en"]


def test_push_missing_main_language_uses_first_file(syncer, sheets_client, write_json_file, caplog):
    write_json_file("fr.json", {"f2": "", "f1": ""})
    write_json_file("de.json", {"d1": "", "f1": ""})

    with caplog.at_level(logging.WARNING, logger="i18n_syncer"):
        asyncio.run(syncer.push())

    _, rows = _pushed_rows(sheets_client)
    assert rows[0] == ["Key", "de", "fr"]
    assert [row[0] for row in rows[1:]] == ["d1", "f1", "f2"]
    assert "Main language 'en' not found" in caplog.text


def test_push_missing_directory_returns_false(syncer, sheets_client, tmp_path):
    result = asyncio.run(syncer.push(translation_dir=str(tmp_path / "nope")))

    assert result is False
    sheets_client.list_worksheets.assert_not_called()
    sheets_client.replace_all_rows.assert_not_called()


def test_push_without_valid_files_returns_false(syncer, sheets_client, write_json_file):
    write_json_file("broken.json", "{")
    write_json_file("notes.txt", "not a translation file")

    assert asyncio.run(syncer.push()) is False
    sheets_client.replace_all_rows.assert_not_called()


def test_push_empty_directory_returns_false(syncer, sheets_client):
    assert asyncio.run(syncer.push()) is False
    sheets_client.replace_all_rows.assert_not_called()


def test_push_without_worksheets_raises(syncer, sheets_client, write_json_file):
    write_json_file("en.json", {"a": "A"})
    sheets_client.list_worksheets.return_value = []

    with pytest.raises(WorksheetNotFoundError):
        asyncio.run(syncer.push())
    sheets_client.replace_all_rows.assert_not_called()


def test_push_to_named_worksheet(syncer, sheets_client, write_json_file, caplog):
    write_json_file("en.json", {"a": "A", "b": "B"})
    write_json_file("fr.json", {"a": "A"})

    with caplog.at_level(logging.INFO, logger="i18n_syncer"):
        asyncio.run(syncer.push(sheet_name="Mobile"))

    worksheet, _ = _pushed_rows(sheets_client)
    assert worksheet == "Mobile"
    sheets_client.list_worksheets.assert_not_called()
    assert "Pushed 2 translation keys across 2 languages to Google Sheets" in caplog.text


def test_push_propagates_remote_errors(syncer, sheets_client, write_json_file):
    write_json_file("en.json", {"a": "A"})
    sheets_client.replace_all_rows.side_effect = RuntimeError("network down")

    with pytest.raises(RuntimeError, match="network down"):
        asyncio.run(syncer.push())

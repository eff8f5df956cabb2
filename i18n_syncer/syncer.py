"""
Pull translations from a Google spreadsheet into per-language files and
push them back.

The sheet layout is one row per translation key and one column per
language, with a ``Key`` header in A1 and the language codes next to it.
"""
import asyncio
import contextlib
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from tqdm.asyncio import tqdm

from i18n_syncer.errors import ParseError, WorksheetNotFoundError
from i18n_syncer.file_store import LocalFileStore
from i18n_syncer.format_handlers import BaseFormatHandler, get_format_handler
from i18n_syncer.google_sheets_client import GoogleSheetsClient
from i18n_syncer.key_paths import find_prefix_collisions, flatten, unflatten
from i18n_syncer.tabular_codec import decode_sheet, encode_sheet, stringify_cell

logger = logging.getLogger(__name__)

DEFAULT_MAIN_LANGUAGE = 'en'


@dataclass
class LanguageFile:
    """A parsed translation file found in the translation directory."""
    lang_code: str
    filename: str
    content: Dict[str, Any]


def sort_language_files(language_files: Sequence[LanguageFile], main_language: str) -> List[LanguageFile]:
    """
    Order language files for the sheet columns.

    The main language comes first, codes starting with an underscore come
    last, everything else is alphabetical in between.
    """
    def sort_key(language_file: LanguageFile) -> Tuple[int, str]:
        if language_file.lang_code == main_language:
            return 0, language_file.lang_code
        if language_file.lang_code.startswith('_'):
            return 2, language_file.lang_code
        return 1, language_file.lang_code

    return sorted(language_files, key=sort_key)


def merge_ordered_keys(languages: Sequence[Tuple[str, Dict[str, Any]]], main_language: str) -> List[str]:
    """
    Merge the keys of all languages into one ordered list without duplicates.

    The main language's keys come first in their file order; keys that only
    exist in other languages follow in the order they are first seen.
    """
    if not languages:
        return []

    seed = next((flat for lang_code, flat in languages if lang_code == main_language), None)
    if seed is None:
        seed_lang, seed = languages[0]
        logger.warning(
            "Main language '%s' not found, using key order from '%s' instead",
            main_language, seed_lang
        )

    merged: Dict[str, None] = dict.fromkeys(seed)
    for _, flat in languages:
        for key in flat:
            if key not in merged:
                merged[key] = None
    return list(merged)


@dataclass
class _LockEntry:
    lock: asyncio.Lock
    users: int = 0


class I18nSyncer:
    """Syncs translation files with a spreadsheet, in either direction."""

    def __init__(
            self,
            sheets_client,
            file_store: Optional[LocalFileStore] = None,
            translation_dir: str = './translations',
            main_language: str = DEFAULT_MAIN_LANGUAGE,
            show_progress: bool = True
    ):
        self.sheets_client = sheets_client
        self.file_store = file_store or LocalFileStore()
        self.translation_dir = translation_dir
        self.main_language = main_language
        self.show_progress = show_progress
        self._locks: Dict[Tuple[str, str], _LockEntry] = {}

    @classmethod
    def from_config(cls, config) -> 'I18nSyncer':
        """Build a syncer talking to the spreadsheet named in an AppConfig."""
        client = GoogleSheetsClient(
            spreadsheet_id=config.spreadsheet_id,
            credentials_path=config.credentials_path
        )
        return cls(
            sheets_client=client,
            translation_dir=config.translation_dir,
            main_language=config.main_language,
            show_progress=config.show_progress
        )

    @contextlib.asynccontextmanager
    async def _holding(self, kind: str, name: str):
        # An entry exists only while some operation holds or awaits its lock.
        key = (kind, name)
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _LockEntry(asyncio.Lock())
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    @contextlib.asynccontextmanager
    async def _exclusive(self, worksheet: str, directory: str):
        # Lock order is always worksheet, then directory.
        async with self._holding('worksheet', worksheet):
            async with self._holding('directory', os.path.abspath(directory)):
                yield

    async def _resolve_worksheet(self, sheet_name: Optional[str]) -> str:
        if sheet_name:
            return sheet_name
        worksheets = await asyncio.to_thread(self.sheets_client.list_worksheets)
        if not worksheets:
            logger.error("No worksheets found in the spreadsheet")
            raise WorksheetNotFoundError("No worksheets found in the spreadsheet")
        return worksheets[0].title

    def _to_nested(self, lang_code: str, flat: Dict[str, Any]) -> Dict[str, Any]:
        for prefix, key in find_prefix_collisions(flat):
            logger.warning(
                "[%s] Key '%s' is also a prefix of '%s'; one of the two values is lost in nested output",
                lang_code, prefix, key
            )
        return unflatten(flat)

    async def pull(
            self,
            translation_dir: Optional[str] = None,
            sheet_name: Optional[str] = None,
            format_name: Optional[str] = None
    ) -> Dict[str, Dict[str, Any]]:
        """
        Download a worksheet and write one translation file per language.

        Args:
            translation_dir: Output directory, defaults to the syncer's translation_dir.
            sheet_name: Worksheet to read, defaults to the first worksheet.
            format_name: 'json' or 'js'. Unknown names fall back to 'json'.

        Returns:
            Dict[str, Dict[str, Any]]: The translations written, by language code.
            Flat for JSON, nested for JS.
        """
        handler = get_format_handler(format_name)
        output_dir = translation_dir or self.translation_dir
        logger.info("Starting translation pull from Google Sheets...")
        try:
            await asyncio.to_thread(self.sheets_client.initialize)
            target_sheet = await self._resolve_worksheet(sheet_name)

            async with self._exclusive(target_sheet, output_dir):
                logger.info('Fetching data from worksheet "%s"...', target_sheet)
                rows = await asyncio.to_thread(self.sheets_client.get_all_rows, target_sheet)

                logger.info("Processing data and generating language files...")
                language_data: Dict[str, Dict[str, Any]] = decode_sheet(rows)
                language_count = len(language_data)
                key_count = len(next(iter(language_data.values()))) if language_data else 0

                if handler.nested:
                    language_data = {
                        lang_code: self._to_nested(lang_code, flat)
                        for lang_code, flat in language_data.items()
                    }

                await asyncio.to_thread(self.file_store.ensure_directory, output_dir)
                await self._write_language_files(language_data, output_dir, handler)
        except Exception as e:
            logger.error("Error pulling data: %s", e)
            raise

        logger.info(
            "Pulled %d translation keys across %d languages from Google Sheets",
            key_count, language_count
        )
        return language_data

    async def _write_language_files(
            self,
            language_data: Dict[str, Dict[str, Any]],
            output_dir: str,
            handler: BaseFormatHandler
    ) -> None:
        for lang_code, translations in tqdm(
                language_data.items(),
                desc="Writing language files",
                unit="file",
                disable=not self.show_progress
        ):
            file_path = handler.file_path_for(output_dir, lang_code)
            await asyncio.to_thread(self.file_store.write_text, file_path, handler.serialize(translations))
            logger.info("Translation file saved: %s", file_path)

    async def push(
            self,
            translation_dir: Optional[str] = None,
            sheet_name: Optional[str] = None,
            format_name: Optional[str] = None,
            main_language: Optional[str] = None
    ) -> bool:
        """
        Replace a worksheet with the content of the local translation files.

        Args:
            translation_dir: Directory holding the language files.
            sheet_name: Worksheet to overwrite, defaults to the first worksheet.
            format_name: 'json' or 'js'. Only files with that format's extension are read.
            main_language: Language placed in the first column whose key order
                is used for the rows. Defaults to the syncer's main_language.

        Returns:
            bool: True when the worksheet was written, False when the directory is
            missing or contains no readable language file.
        """
        handler = get_format_handler(format_name)
        source_dir = translation_dir or self.translation_dir
        main_language = main_language or self.main_language
        logger.info("Starting translation push to Google Sheets...")
        try:
            await asyncio.to_thread(self.sheets_client.initialize)

            logger.info("Scanning for language files in %s...", source_dir)
            if not self.file_store.exists(source_dir):
                logger.error("Directory not found: %s", source_dir)
                return False

            target_sheet = await self._resolve_worksheet(sheet_name)

            async with self._exclusive(target_sheet, source_dir):
                logger.info('Pushing translations to worksheet "%s"...', target_sheet)
                language_files = await self._read_language_files(source_dir, handler)
                if not language_files:
                    logger.error(
                        "No valid language files with extension %s found in %s",
                        handler.extension, source_dir
                    )
                    return False

                language_files = sort_language_files(language_files, main_language)
                logger.info(
                    "Found %d language files: %s",
                    len(language_files), ', '.join(f.lang_code for f in language_files)
                )

                languages = [(f.lang_code, flatten(f.content)) for f in language_files]
                ordered_keys = merge_ordered_keys(languages, main_language)
                sheet_rows = [
                    [stringify_cell(cell) for cell in row]
                    for row in encode_sheet(languages, ordered_keys)
                ]
                logger.info("Preparing data: %d rows x %d columns", len(sheet_rows), len(sheet_rows[0]))

                await asyncio.to_thread(self.sheets_client.replace_all_rows, target_sheet, sheet_rows)
        except Exception as e:
            logger.error("Error pushing translations: %s", e)
            raise

        logger.info(
            "Pushed %d translation keys across %d languages to Google Sheets",
            len(ordered_keys), len(language_files)
        )
        return True

    async def _read_language_files(self, directory: str, handler: BaseFormatHandler) -> List[LanguageFile]:
        filenames = await asyncio.to_thread(self.file_store.list_files, directory)
        tasks = []
        for filename in filenames:
            lang_code = handler.language_code_for(filename)
            if lang_code:
                tasks.append(self._read_language_file(directory, filename, lang_code, handler))
        if not tasks:
            return []

        results = await tqdm.gather(
            *tasks,
            desc="Reading language files",
            unit="file",
            disable=not self.show_progress
        )
        return [language_file for language_file in results if language_file is not None]

    async def _read_language_file(
            self,
            directory: str,
            filename: str,
            lang_code: str,
            handler: BaseFormatHandler
    ) -> Optional[LanguageFile]:
        file_path = os.path.join(directory, filename)
        try:
            try:
                content = await asyncio.to_thread(self.file_store.read_text, file_path)
            except UnicodeDecodeError as e:
                raise ParseError(filename, f"not valid UTF-8 ({e})") from e
            translations = handler.parse(content, filename)
        except ParseError as e:
            logger.warning("Could not read %s: %s", filename, e)
            return None
        return LanguageFile(lang_code=lang_code, filename=filename, content=translations)

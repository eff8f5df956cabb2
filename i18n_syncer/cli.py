"""Command line entry point: ``i18n-syncer pull`` and ``i18n-syncer push``."""
import argparse
import asyncio
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import List, Optional

from i18n_syncer.app_config import load_app_config
from i18n_syncer.errors import ExternalServiceError, I18nSyncError, NotFoundError
from i18n_syncer.format_handlers import FORMAT_HANDLERS
from i18n_syncer.syncer import I18nSyncer

DISTRIBUTION_NAME = 'i18n-sheets-syncer'


def _package_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        # Running from a source checkout that was never installed.
        return 'unknown'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='i18n-syncer',
        description='Pull and push translations between Google Sheets and local files'
    )
    parser.add_argument('--version', action='version', version=f"%(prog)s {_package_version()}")
    subparsers = parser.add_subparsers(dest='command', required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('-s', '--spreadsheet-id', help='Google Spreadsheet ID')
    common.add_argument('-n', '--sheet-name', help='Worksheet to use (default: the first one)')
    common.add_argument('-c', '--credentials', dest='credentials_path',
                        help='Path to the service account credentials file (default: ./credentials.json)')
    common.add_argument('-t', '--translation-dir', help='Directory for translation files (default: ./translations)')
    common.add_argument('-f', '--format', dest='format_name',
                        help=f"Translation file format: {', '.join(FORMAT_HANDLERS)} (default: json)")
    common.add_argument('--config', dest='config_file', help='YAML configuration file (default: ./config.yaml)')
    common.add_argument('--log-level', help='Logging level, e.g. DEBUG or INFO')
    common.add_argument('--no-progress', dest='show_progress', action='store_false', default=None,
                        help='Do not show progress bars')

    subparsers.add_parser('pull', parents=[common],
                          help='Pull translations from Google Sheets to translation files')
    push_parser = subparsers.add_parser('push', parents=[common],
                                        help='Push translations from translation files to Google Sheets')
    push_parser.add_argument('-m', '--main-language',
                             help='Language whose key order is used for the rows (default: en)')
    return parser


async def run(args: argparse.Namespace) -> int:
    overrides = {
        'spreadsheet_id': args.spreadsheet_id,
        'sheet_name': args.sheet_name,
        'credentials_path': args.credentials_path,
        'translation_dir': args.translation_dir,
        'format_name': args.format_name,
        'log_level': args.log_level.upper() if args.log_level else None,
        'show_progress': args.show_progress,
        'main_language': getattr(args, 'main_language', None),
    }
    config = load_app_config(args.config_file, overrides)
    syncer = I18nSyncer.from_config(config)

    if args.command == 'pull':
        await syncer.pull(
            translation_dir=config.translation_dir,
            sheet_name=config.sheet_name,
            format_name=config.format_name
        )
        return 0

    success = await syncer.push(
        translation_dir=config.translation_dir,
        sheet_name=config.sheet_name,
        format_name=config.format_name,
        main_language=config.main_language
    )
    return 0 if success else 1


def _report_error(error: Exception) -> None:
    if isinstance(error, NotFoundError) and 'Credentials' in str(error):
        message = "Credentials file not found. Please provide a valid path to your Google API credentials."
    elif isinstance(error, ExternalServiceError) and (error.auth_failure or error.status in (401, 403)):
        message = "Google API authorization failed. Please check your credentials and permissions."
    elif isinstance(error, ExternalServiceError) and error.status == 404:
        message = "Spreadsheet not found. Please check your spreadsheet ID."
    else:
        message = str(error)
    print(f"Error: {message}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except (I18nSyncError, OSError) as e:
        _report_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())

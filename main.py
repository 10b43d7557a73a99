import argparse
import asyncio

from loguru import logger

from notereplace import FindReplaceSession, LocalVault
from notereplace.model import FindReplaceError, Query, Scope, get_settings
from notereplace.utils import configure_logging


async def run(args: argparse.Namespace) -> None:
    """入口函数，在本地目录上演示一次 搜索-替换-撤销 流程"""
    settings = get_settings()
    configure_logging(settings)

    vault = LocalVault(args.root, suffixes=settings.document_suffixes)
    session = await FindReplaceSession.open(vault, settings)

    query = Query(
        pattern=args.find,
        use_regex=not args.literal,
        case_insensitive=args.ignore_case,
        whole_word=args.whole_word,
    )
    try:
        outcome = await session.search(query, Scope.VAULT)
    except FindReplaceError as e:
        logger.error(f"❌ {e.notice}")
        return

    for match in session.index:
        context = session.preview(match.id, args.replace)
        if context is not None:
            logger.info(f"{match.path}:{match.line + 1}  {context.before}[{context.matched} → {context.replacement}]{context.after}")

    if args.apply and outcome.total_matches:
        await session.replace_approved(args.replace)
        if args.undo:
            await session.undo_last()

    session.teardown()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Find and replace across a folder of notes")
    parser.add_argument("root", help="notes directory")
    parser.add_argument("find", help="pattern to search for")
    parser.add_argument("replace", nargs="?", default="", help="replacement template ($1, $& ...)")
    parser.add_argument("--literal", action="store_true", help="treat the pattern as plain text")
    parser.add_argument("--ignore-case", action="store_true")
    parser.add_argument("--whole-word", action="store_true")
    parser.add_argument("--apply", action="store_true", help="write replacements")
    parser.add_argument("--undo", action="store_true", help="revert right after applying")
    asyncio.run(run(parser.parse_args()))

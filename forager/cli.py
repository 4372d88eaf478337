"""
Forager command line.

Composition root: builds config, document store, LLM client and retrieval
agent, then runs one command.

Usage:
    forager list
    forager show DOCUMENT_ID
    forager import path/to/uploaded-document.json
    forager ask "What is the termination policy?" [--document-id ID] [--json]
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from .common.config import ForagerConfig, ensure_directories, load_config
from .common.llm_client import LLMClient
from .retriever import RetrievalAgent, RetrievalError
from .store import (
    DocumentNotFoundError,
    DocumentStore,
    InMemoryDocumentStore,
    JsonDocumentStore,
    format_document_summary,
    load_document_file,
)

logger = logging.getLogger("forager.cli")


def build_store(config: ForagerConfig) -> DocumentStore:
    if config.store.backend == "memory":
        return InMemoryDocumentStore()
    if config.store.backend != "json":
        logger.warning("Unknown store backend %r, using json", config.store.backend)
    return JsonDocumentStore(Path(config.store.path))


def cmd_list(store: DocumentStore, args, config: ForagerConfig) -> int:
    documents = store.list_documents()
    if not documents:
        print("No documents stored.")
        return 0
    for document in documents:
        print(f"{document.id}  {document.filename}  {document.page_count} pages  {document.uploaded_at.isoformat()}")
    stats = store.get_stats()
    print(f"\n{stats['documents']} documents, {stats['pages']} pages")
    return 0


def cmd_show(store: DocumentStore, args, config: ForagerConfig) -> int:
    document = store.get(args.document_id)
    if document is None:
        print(f"Document not found: {args.document_id}", file=sys.stderr)
        return 1
    print(format_document_summary(document))
    return 0


def cmd_import(store: DocumentStore, args, config: ForagerConfig) -> int:
    try:
        document = load_document_file(Path(args.path))
    except (json.JSONDecodeError, OSError, ValidationError) as e:
        print(f"Cannot import {args.path}: {e}", file=sys.stderr)
        return 1
    store.save(document)
    print(f"Imported {document.id} ({document.page_count} pages)")
    return 0


def cmd_ask(store: DocumentStore, args, config: ForagerConfig) -> int:
    try:
        pages = store.pages_for(args.document_id)
    except DocumentNotFoundError:
        print(f"Document not found: {args.document_id}", file=sys.stderr)
        return 1

    llm_client = LLMClient.from_config(config.llm)
    if not llm_client.is_available:
        logger.warning("No %s API key configured; triage will degrade and synthesis will fail", config.llm.provider)

    agent = RetrievalAgent.from_config(pages, llm_client, config)
    try:
        result = asyncio.run(agent.process_query(args.query))
    except (RetrievalError, ValueError) as e:
        print(f"Query processing failed: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0

    print(result.answer)
    print()
    print(f"**Relevant pages**: {', '.join(str(n) for n in result.relevant_page_numbers)}")
    if result.sources:
        print("**Sources**:")
        for source in result.sources:
            print(f"  - Page {source.page_number} ({source.origin}, relevance {source.relevance_score:.2f})")
    for warning in result.warnings:
        print(f"**Warning**: {warning}")
    return 0


COMMANDS = {
    "list": cmd_list,
    "show": cmd_show,
    "import": cmd_import,
    "ask": cmd_ask,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="forager", description="Ask questions about processed PDF documents")
    parser.add_argument("--store-path", default=None, help="Override the document store directory")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List stored documents")

    show = sub.add_parser("show", help="Print a processing summary of a document")
    show.add_argument("document_id")

    imp = sub.add_parser("import", help="Import a document JSON dump into the store")
    imp.add_argument("path")

    ask = sub.add_parser("ask", help="Ask a question")
    ask.add_argument("query")
    ask.add_argument("--document-id", default=None, help="Query one document (default: all documents)")
    ask.add_argument("--json", action="store_true", help="Print the result as JSON")

    return parser


def main(argv=None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    config = load_config()
    if args.store_path:
        config.store.path = args.store_path
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ensure_directories(config)

    store = build_store(config)
    return COMMANDS[args.command](store, args, config)


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Chat Organizer CLI - classify chat responses into a topic outline
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from chat_organizer.logging_config import setup_logging, get_logger

logger = get_logger("cli")


def get_store(config):
    """Get ConversationStore for the configured data directory."""
    from chat_organizer.storage import ConversationStore
    return ConversationStore(Path(config.storage.data_dir))


def load_or_exit(store, conversation_id):
    index = store.load(conversation_id)
    if index is None:
        print(f"Conversation not found: {conversation_id}")
        sys.exit(1)
    return index


def build_pipeline(config):
    """Create the classification pipeline from configuration and environment."""
    from chat_organizer.labeler import TopicLabeler
    from chat_organizer.llm import LLMProviderFactory
    from chat_organizer.pipeline import ClassificationPipeline

    provider = LLMProviderFactory.from_config(config.providers)
    return provider, ClassificationPipeline(
        embedder=provider,
        labeler=TopicLabeler(provider),
        thresholds=config.thresholds,
        timeout=config.providers.timeout,
    )


async def run_ingest(args, config):
    from chat_organizer.content_processor import ContentProcessor
    from chat_organizer.conversation import create_index
    from chat_organizer.ingestion import IngestionQueue

    store = get_store(config)
    index = store.load(args.conversation) or create_index(args.conversation)
    passages = ContentProcessor.load_passages(Path(args.file), start=index.next_prompt_index())
    logger.info("Loaded %d passage(s) from %s", len(passages), args.file)
    provider, pipeline = build_pipeline(config)

    async with provider:
        reembedded = await pipeline.initialize_embeddings(index)
        if reembedded:
            print(f"Re-embedded {reembedded} existing node(s).")

        def persist(idx, outcome):
            store.save(idx)

        async with IngestionQueue(pipeline, index, on_placement=persist) as queue:
            queue.submit_many(passages)

    for outcome in queue.results:
        result = outcome.result
        node = index.tree.get(result.node_id)
        marker = "+" if result.is_new_node else " "
        print(f"{marker} #{outcome.passage.index:<4d} -> {node.label if node else result.node_id} "
              f"({result.confidence:.2f})")

    print(f"\nClassified {len(queue.results)}, skipped {len(queue.skipped)}, "
          f"failed {len(queue.failures)}.")
    for outcome in queue.failures:
        print(f"  [X] #{outcome.passage.index}: {outcome.error}")
    return 1 if queue.failures else 0


def cmd_ingest(args, config):
    """Classify passages from a file into a conversation."""
    if not Path(args.file).exists():
        print(f"Input file not found: {args.file}")
        sys.exit(1)
    sys.exit(asyncio.run(run_ingest(args, config)))


def cmd_show(args, config):
    """Print the topic outline of a conversation."""
    from rich.console import Console
    from chat_organizer.outline import render_outline

    index = load_or_exit(get_store(config), args.conversation)
    Console().print(render_outline(index, show_prompts=args.prompts))


def cmd_stats(args, config):
    """Show statistics for a conversation."""
    from chat_organizer.models import NodeRank

    index = load_or_exit(get_store(config), args.conversation)
    nodes = index.tree.nodes()

    print(f"\nConversation: {index.conversation_id}")
    print("=" * 40)
    print(f"Prompts:    {len(index.prompts)}")
    print(f"Topics:     {sum(1 for n in nodes if n.rank == NodeRank.TOPIC)}")
    print(f"Subtopics:  {sum(1 for n in nodes if n.rank == NodeRank.SUBTOPIC)}")
    print(f"Cache size: {len(index.cache)}")

    topics = [n for n in nodes if n.rank == NodeRank.TOPIC]
    if topics:
        print("\nLargest topics:")
        for node in sorted(topics, key=lambda n: -n.prompt_count)[:10]:
            print(f"  {node.label[:40]:40s} {node.prompt_count:4d}")


def cmd_list(args, config):
    """List stored conversations."""
    conversations = get_store(config).list_conversations()
    if not conversations:
        print("No conversations stored.")
        return
    for conversation_id in conversations:
        print(conversation_id)
    print(f"\nTotal: {len(conversations)} conversations")


def cmd_remove(args, config):
    """Delete a stored conversation."""
    if get_store(config).delete(args.conversation):
        print(f"Removed: {args.conversation}")
    else:
        print(f"Conversation not found: {args.conversation}")


def main():
    parser = argparse.ArgumentParser(
        prog="chat-organizer",
        description="Chat Organizer - Build a topic outline from chat responses"
    )
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    ingest_parser = subparsers.add_parser("ingest", help="Classify passages from a file")
    ingest_parser.add_argument("file", help="JSON list or '---' separated text file")
    ingest_parser.add_argument("-c", "--conversation", required=True, help="Conversation id")
    ingest_parser.set_defaults(func=cmd_ingest)

    show_parser = subparsers.add_parser("show", help="Show the topic outline")
    show_parser.add_argument("-c", "--conversation", required=True, help="Conversation id")
    show_parser.add_argument("-p", "--prompts", action="store_true", help="List prompts under nodes")
    show_parser.set_defaults(func=cmd_show)

    stats_parser = subparsers.add_parser("stats", help="Show statistics")
    stats_parser.add_argument("-c", "--conversation", required=True, help="Conversation id")
    stats_parser.set_defaults(func=cmd_stats)

    list_parser = subparsers.add_parser("list", help="List stored conversations")
    list_parser.set_defaults(func=cmd_list)

    remove_parser = subparsers.add_parser("remove", help="Remove a stored conversation")
    remove_parser.add_argument("-c", "--conversation", required=True, help="Conversation id")
    remove_parser.set_defaults(func=cmd_remove)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    load_dotenv()

    from chat_organizer.config import get_config
    from chat_organizer.errors import ConfigError
    try:
        config = get_config(Path(args.config) if args.config else None)
    except ConfigError as e:
        print(f"Invalid configuration: {e}")
        sys.exit(2)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO, config.logging.file)

    args.func(args, config)


if __name__ == "__main__":
    main()

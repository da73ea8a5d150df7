import argparse
import asyncio
import sys

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from config.config import Config
from models.research import Query, ResearchResult
from orchestrator.research_orchestrator import ResearchError, ResearchOrchestrator
from tools.web.factory import create_research_orchestrator_from_env


def print_result(result: ResearchResult) -> None:
    """Print sources, fact checks and summary line for a research result."""
    if result.sources:
        print("\n=== Sources ===")
        for rank, source in enumerate(result.sources, start=1):
            print(
                f"{rank:>2}. {source.title}\n    {source.url}\n"
                f"    relevance {source.relevance_score:.2f} | credibility {source.credibility_score:.2f}"
            )

    if result.fact_checks:
        print("\n=== Fact Checks ===")
        for fc in result.fact_checks:
            print(f"- [{fc.verdict.value}] ({fc.confidence:.2f}) {fc.claim}")
            if fc.explanation:
                print(f"    {fc.explanation}")

    print(
        f"\n[query {result.query_id} | confidence {result.confidence:.2f} | "
        f"{result.processing_time_ms} ms]\n"
    )


async def run_query(orchestrator: ResearchOrchestrator, query: Query, stream: bool) -> None:
    if not stream:
        result = await orchestrator.research(query)
        print(f"\n{result.content}")
        print_result(result)
        return

    print()
    async for event in orchestrator.research_stream(query):
        if event.type == "chunk":
            sys.stdout.write(event.text)
            sys.stdout.flush()
        else:
            print()
            print_result(event.result)


async def interactive(orchestrator: ResearchOrchestrator, args) -> None:
    print("\n=== MUN Research Assistant ===")
    print("Type 'exit' to quit, 'stats' to see cache size, or 'help' for commands\n")

    while True:
        try:
            user_input = (await asyncio.to_thread(input, "Research: ")).strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting...")
            break

        if not user_input:
            continue

        if user_input.lower() in ("exit", "quit"):
            print("\nGoodbye!")
            break

        if user_input.lower() == "stats":
            print(f"\nCached results: {len(orchestrator.cache)}\n")
            continue

        if user_input.lower() == "clear":
            orchestrator.cache.clear()
            print("\nCache cleared\n")
            continue

        if user_input.lower() == "help":
            print("\n=== Available Commands ===")
            print("help      - Show this help message")
            print("stats     - Show number of cached results")
            print("clear     - Clear the result cache")
            print("exit/quit - Exit the program\n")
            continue

        query = Query(text=user_input, context=args.context, requested_source_hints=frozenset(args.hint))
        try:
            await run_query(orchestrator, query, args.stream)
        except ResearchError as e:
            print(f"\nResearch failed: {e}\n")


async def run(args) -> int:
    config = Config()
    problems = config.validate()
    if problems:
        for problem in problems:
            print(f"Configuration error: {problem}", file=sys.stderr)
        return 1

    print(f"Using {config.get_model_info()} with {config.SEARCH_BACKEND} search")

    async with create_research_orchestrator_from_env(config) as orchestrator:
        if not args.query:
            await interactive(orchestrator, args)
            return 0

        try:
            query = Query(
                text=" ".join(args.query),
                context=args.context,
                requested_source_hints=frozenset(args.hint),
                priority=args.priority,
            )
        except ValueError as e:
            print(f"Invalid query: {e}", file=sys.stderr)
            return 2

        try:
            await run_query(orchestrator, query, args.stream)
        except ResearchError as e:
            print(f"Research failed: {e}", file=sys.stderr)
            return 1
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Research a topic across trusted, news, web and academic sources")
    parser.add_argument("query", nargs="*", help="Query to research; starts an interactive session when omitted")
    parser.add_argument("--context", default=None, help='Framing for the answer, e.g. "UNSC crisis committee"')
    parser.add_argument("--hint", action="append", default=[], help="Domain to search first (repeatable)")
    parser.add_argument("--priority", choices=["low", "medium", "high"], default="medium")
    parser.add_argument("--stream", action="store_true", help="Stream the answer as it is generated")
    args = parser.parse_args(argv)

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\nExiting...")
        return 130


if __name__ == "__main__":
    sys.exit(main())

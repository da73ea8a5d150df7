"""Build synthesis / fact-check prompts and the templated degraded responses."""

from collections.abc import Sequence

from models.research import Query, Source

from .intent import is_crisis_context

DEFAULT_CONTEXT = "MUN debate preparation"


def build_source_summaries(sources: Sequence[Source]) -> str:
    """One line per source: markdown link, domain and combined score."""
    return "\n".join(
        f"[{s.title}]({s.url}): {s.domain} (relevance: {s.rank_key:.2f})" for s in sources
    )


def build_synthesis_prompt(query: Query, sources: Sequence[Source]) -> str:
    """
    Build the single synthesis prompt for the generation collaborator.

    Args:
        query: The research query
        sources: Ranked sources, best first

    Returns:
        Prompt text
    """
    lines = [
        "You are a research assistant for Model United Nations debates. Based on the following "
        "sources, provide a comprehensive and accurate response to this query:",
        "",
        f"Query: {query.text}",
        f"Context: {query.context or DEFAULT_CONTEXT}",
        "",
        "Available Sources:",
        build_source_summaries(sources),
        "",
        "Guidelines:",
        "1. Synthesize information from multiple sources when possible",
        "2. Focus on facts, data, and official positions",
        "3. Highlight any conflicting information between sources",
        "4. Maintain neutrality and objectivity",
        "5. Include specific references to sources when providing information",
        "6. For MUN context, emphasize relevant UN resolutions, treaties, or official positions",
        "7. If sources have different credibility levels, acknowledge this",
        "",
        "Provide a structured response that includes:",
        "- Key findings and facts",
        "- Relevant UN positions or resolutions (if applicable)",
        "- Different perspectives or conflicting information (if present)",
        "- Assessment of information reliability",
    ]
    if is_crisis_context(query.context):
        lines.append("- Recent developments and current status")
    lines.extend(["", "Response:"])
    return "\n".join(lines)


def build_fact_check_prompt(content: str) -> str:
    return "\n".join(
        [
            "Analyze the following content for factual claims and verify them:",
            "",
            content,
            "",
            "For each significant claim, provide:",
            '1. "claim": the claim statement',
            '2. "verdict": one of "true", "false", "misleading", "unverifiable"',
            '3. "confidence": a number between 0 and 1',
            '4. "explanation": a brief explanation',
            '5. "supporting_sources": sources you would expect to support it',
            '6. "conflicting_sources": sources you would expect to contradict it',
            "",
            "Focus on:",
            "- Statistics and numbers",
            "- Official positions or statements",
            "- Dates and events",
            "- Scientific facts",
            "- Legal or policy claims",
            "",
            "Respond with a JSON array of objects using exactly those keys and nothing else.",
        ]
    )


def build_not_found_message(query: Query) -> str:
    return (
        f"I couldn't find reliable information for \"{query.text}\". Please try rephrasing your "
        "query or check if the topic is spelled correctly."
    )


def build_fallback_listing(sources: Sequence[Source], limit: int = 5) -> str:
    """Templated answer used when synthesis is unavailable: the top sources as links."""
    listing = "\n".join(f"- [{s.title}]({s.url})" for s in sources[:limit])
    return (
        f"I found {len(sources)} relevant sources, but encountered an error while synthesizing "
        f"the information. Here are the top sources:\n\n{listing}"
    )

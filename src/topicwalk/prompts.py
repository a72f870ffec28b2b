"""Prompt text for exploration requests.

The system instruction is fixed. The user prompt embeds the topic, the
path context produced by :mod:`topicwalk.context` and the XML shape the
response parser understands.
"""

from __future__ import annotations


SYSTEM_PROMPT = """\
You are an expert knowledge exploration assistant. Your task is to help \
users explore topics in depth while staying inside the universe of the \
topic they started from. Always respond in well-structured XML using \
exactly the requested elements, with no text before or after the root \
element."""


# Rendered into the context block whenever a navigation path exists.
PATH_DIRECTIVES = (
    'Treat every term in this path as a canonical concept within the universe of "{root}". '
    "Interpret names, places and ideas as they exist inside that universe.",
    "Never express uncertainty about whether a term belongs to this universe; "
    "answer as an authority on it.",
    "Do not digress into unrelated real-world meanings of these terms unless a "
    "contrast is explicitly requested.",
    "Stay consistent with every ancestor in the path, from the root topic down "
    "to the current parent.",
)


_EXPLORATION_PROMPT = """\
Generate a comprehensive exploration of the topic "{topic}".
{context_block}
Include:

1. A summary (2-3 paragraphs) covering core concepts, significance and \
current relevance, optionally followed by bullet lists of key points.
2. A detailed summary that expands on history, mechanisms, debates and \
future directions, optionally followed by bullet lists.
3. 3-5 concrete examples, each with its significance, context and impact.
4. 4-6 explore paths that lead to meaningful areas of further study.
5. Connections to neighbouring topics within the same universe.

Format your response in this exact XML structure:
<exploration>
  <summary>
    <text>Summary paragraphs</text>
    <list>
      <item>
        <text>Key point</text>
        <description>Optional elaboration</description>
      </item>
    </list>
  </summary>
  <detailedSummary>
    <text>Detailed summary paragraphs</text>
    <list>
      <item>
        <text>Key point</text>
        <description>Optional elaboration</description>
      </item>
    </list>
  </detailedSummary>
  <examples>
    <example>
      <title>Example title</title>
      <description>What happened or what it is</description>
      <significance>Why it matters</significance>
      <context>Where it fits</context>
      <impact>What it changed</impact>
    </example>
  </examples>
  <explorePaths>
    <path>
      <title>Path title</title>
      <description>What this direction covers</description>
      <concepts>Key concepts to explore</concepts>
      <relevantTopics>Related topics</relevantTopics>
      <researchAreas>Open research areas</researchAreas>
      <keyQuestions>Questions worth answering</keyQuestions>
      <connections>How it links back to the topic</connections>
    </path>
  </explorePaths>
  <connections>
    <connection>
      <title>Related topic</title>
      <description>How the two relate</description>
    </connection>
  </connections>
</exploration>

Important:
- Respond with valid XML only, following this exact structure
- Escape ampersands as &amp; inside text
- Provide specific, concrete examples rather than general statements
- Balance technical depth with accessibility"""


def build_exploration_prompt(topic: str, context: str = "") -> str:
    """Build the user prompt for *topic*.

    Parameters
    ----------
    topic:
        The topic being explored.
    context:
        The path context block. Empty for root-level queries.
    """
    context_block = f"\n{context}\n" if context else ""
    return _EXPLORATION_PROMPT.format(topic=topic, context_block=context_block)

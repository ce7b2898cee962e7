"""
Diagram prompt templates.

System and user messages for the generate and modify actions, built with
LangChain prompt templates and converted to provider-neutral ChatMessage
values. Output depends only on the inputs.

Dependencies: langchain_core.prompts, diagrammaton.models
System role: Prompt construction for every provider adapter
"""

import json
from typing import Any

from langchain_core.prompts import ChatPromptTemplate

from diagrammaton.models.generation import (
    Action,
    ChatMessage,
    ChatRole,
    GeneratePayload,
    ModifyPayload,
)

GENERATE_SYSTEM_PROMPT = """You are a diagram design expert working inside FigJam. You turn short, \
plain-language descriptions into rich, accurate diagrams.

## Instructions
1. For simple processes, amplify the detail: add the steps and edge cases a \
practitioner would expect even if the description omits them (think \
'Forgot password?' in a login flow)
2. For well-known or complex systems, follow the rules and conditions of that domain
3. Make loops and recursion explicit and unambiguous
4. When an endpoint exists, show what triggers it
5. Keep link labels succinct; put detail in nodes instead
6. Never apologize and never say oops

## When you cannot draw
If the description is too vague or is not something a diagram can express, \
return no steps and a message that is witty, helpful and tells the user how \
to fix the description."""

MODIFY_SYSTEM_PROMPT = """You are a diagram design expert working inside FigJam. You edit an \
existing diagram in place according to the user's instructions.

## Instructions
1. Keep every node, link and id that the instructions do not ask you to change
2. Reuse existing node ids for existing nodes; introduce new ids only for new nodes
3. Apply the requested changes fully, adding supporting steps where the change needs them
4. Return the complete updated diagram, not just the changed steps
5. Keep link labels succinct; put detail in nodes instead
6. Never apologize and never say oops

## When you cannot edit
If the instructions cannot be applied to this diagram, return no steps and a \
message that is witty, helpful and tells the user what to change."""

GENERATE_PROMPT = ChatPromptTemplate.from_messages([
    ("system", GENERATE_SYSTEM_PROMPT),
    ("human", "Diagram description: {diagram_description}"),
])

MODIFY_PROMPT = ChatPromptTemplate.from_messages([
    ("system", MODIFY_SYSTEM_PROMPT),
    ("human", """Current diagram:
{diagram_json}

Requested changes: {instructions}"""),
])

_ROLE_BY_TYPE = {
    "system": ChatRole.SYSTEM,
    "human": ChatRole.USER,
    "ai": ChatRole.ASSISTANT,
}


def _serialize_diagram(diagram_data: Any) -> str:
    if isinstance(diagram_data, str):
        return diagram_data.strip()
    return json.dumps(diagram_data, ensure_ascii=False, separators=(",", ":"))


def build_messages(
    action: Action | str,
    payload: GeneratePayload | ModifyPayload | dict[str, Any],
) -> list[ChatMessage]:
    """
    Build the ordered message sequence for an action.

    Args:
        action: 'generate' or 'modify'
        payload: Action payload (model or raw dict using wire names)

    Returns:
        list[ChatMessage]: System message followed by the user message

    Raises:
        ValueError: If action is not a known Action
    """
    action = Action(action)

    if action is Action.GENERATE:
        data = GeneratePayload.model_validate(payload) if isinstance(payload, dict) else payload
        prompt_messages = GENERATE_PROMPT.format_messages(
            diagram_description=(data.diagram_description or "").strip(),
        )
    else:
        data = ModifyPayload.model_validate(payload) if isinstance(payload, dict) else payload
        prompt_messages = MODIFY_PROMPT.format_messages(
            diagram_json=_serialize_diagram(data.diagram_data),
            instructions=(data.instructions or "").strip(),
        )

    return [
        ChatMessage(role=_ROLE_BY_TYPE[message.type], content=str(message.content))
        for message in prompt_messages
    ]

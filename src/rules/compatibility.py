"""Compatibility matching between a rule and a target environment."""

from dataclasses import dataclass, field
from typing import Optional, Union

from .models import Compatibility, ParsedDocument, Rule


@dataclass
class Environment:
    """Target environment. Unset dimensions are not checked."""

    ide: Optional[str] = None
    ai_assistant: Optional[str] = None
    frameworks: list[str] = field(default_factory=list)
    mcp_servers: list[str] = field(default_factory=list)


@dataclass
class CompatibilityResult:
    compatible: bool
    reasons: list[str] = field(default_factory=list)


def _compatibility_of(target: Union[Rule, ParsedDocument, Compatibility, None]) -> Compatibility:
    if isinstance(target, Compatibility):
        return target
    compat = getattr(target, "compatibility", None)
    return compat if compat is not None else Compatibility()


def check_compatibility(
    target: Union[Rule, ParsedDocument, Compatibility, None],
    environment: Environment,
) -> CompatibilityResult:
    """Check a rule's declared compatibility against *environment*.

    A dimension constrains only when the environment sets it and the rule
    declares a non-empty list for it. IDE and assistant need exact membership;
    frameworks and MCP servers need any overlap.
    """
    compat = _compatibility_of(target)
    reasons = []

    if environment.ide and compat.ides and environment.ide not in compat.ides:
        reasons.append(f"Rule is not compatible with IDE: {environment.ide}")

    if (
        environment.ai_assistant
        and compat.ai_assistants
        and environment.ai_assistant not in compat.ai_assistants
    ):
        reasons.append(f"Rule is not compatible with AI assistant: {environment.ai_assistant}")

    if environment.frameworks and compat.frameworks:
        if not any(fw in compat.frameworks for fw in environment.frameworks):
            reasons.append(
                f"Rule is not compatible with frameworks: {', '.join(environment.frameworks)}"
            )

    if environment.mcp_servers and compat.mcp_servers:
        if not any(server in compat.mcp_servers for server in environment.mcp_servers):
            reasons.append(
                f"Rule is not compatible with MCP servers: {', '.join(environment.mcp_servers)}"
            )

    return CompatibilityResult(compatible=not reasons, reasons=reasons)

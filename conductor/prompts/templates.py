"""
Prompt templates for Conductor operations.

This module provides the fixed instructions used by the decomposer, the
per-role instructions used when executing sub-tasks, and the synthesis
instruction used to condense completed outputs.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from conductor.decomposition.models import AgentType


# =============================================================================
# TEMPLATE MODEL
# =============================================================================


class PromptTemplate(BaseModel):
    """A reusable prompt template."""

    model_config = ConfigDict(frozen=True)

    name: str
    template: str
    description: str = ""
    variables: list[str] = Field(default_factory=list)

    def format(self, **kwargs: Any) -> str:
        """Format the template with provided values.

        Args:
            **kwargs: Template variable values.

        Returns:
            Formatted prompt string.

        Raises:
            ValueError: If a declared variable is not provided.
        """
        if not self.variables:
            return self.template
        missing = self.get_missing_variables(**kwargs)
        if missing:
            raise ValueError(f"Template {self.name!r} missing variables: {', '.join(missing)}")
        return self.template.format(**kwargs)

    def get_missing_variables(self, **kwargs: Any) -> list[str]:
        """Get list of variables not provided.

        Args:
            **kwargs: Provided variables.

        Returns:
            List of missing variable names.
        """
        return [v for v in self.variables if v not in kwargs]


# =============================================================================
# DECOMPOSITION
# =============================================================================


DECOMPOSE_PROMPT = PromptTemplate(
    name="decompose",
    description="System instruction for breaking a task into agent-sized sub-tasks",
    template="""You are a task decomposer for a multi-agent system. Break down the given task into atomic sub-tasks.

Each sub-task should be:
- Small enough for a single focused agent
- Clear about what needs to be done
- Tagged with the right agent type

Agent types:
- "research": gather information, analyze requirements, investigate options
- "implement": write code, create files, make changes
- "test": write tests, verify behavior, check edge cases
- "review": review code quality, check conventions, validate against requirements

Respond with a JSON object:
{
  "subTasks": [
    {
      "id": "unique-short-id",
      "title": "brief title",
      "description": "detailed description of what this agent should do",
      "agentType": "research|implement|test|review",
      "dependsOn": ["ids of sub-tasks that must complete first"]
    }
  ]
}

Order sub-tasks logically: research -> implement -> test -> review.
Only return the JSON, no other text.""",
)

PROJECT_CONTEXT_BLOCK = PromptTemplate(
    name="project_context",
    description="Project context appended to the decomposition instruction",
    template="""

<project_context>
{project_context}
</project_context>""",
    variables=["project_context"],
)

DECOMPOSE_REQUEST = PromptTemplate(
    name="decompose_request",
    description="User message carrying the task to decompose",
    template="Decompose this task:\n\n{task}",
    variables=["task"],
)


# =============================================================================
# AGENT ROLES
# =============================================================================


RESEARCH_PROMPT = PromptTemplate(
    name="research",
    description="Research agent instruction",
    template="""You are a research agent. Your job is to gather information, analyze requirements, and provide findings.
Be thorough but concise. Output your findings as structured text.""",
)

IMPLEMENT_PROMPT = PromptTemplate(
    name="implement",
    description="Implementation agent instruction",
    template="""You are an implementation agent. Your job is to write code and create files.
Follow the project conventions. Output the code you would write, with file paths clearly marked.""",
)

TEST_PROMPT = PromptTemplate(
    name="test",
    description="Testing agent instruction",
    template="""You are a testing agent. Your job is to write tests and verify behavior.
Cover happy paths, edge cases, and error scenarios. Output test code with clear descriptions.""",
)

REVIEW_PROMPT = PromptTemplate(
    name="review",
    description="Code review agent instruction",
    template="""You are a code review agent. Your job is to review work quality and check conventions.
Be constructive. Flag issues by severity. Output a structured review with findings.""",
)

AGENT_PROMPTS: dict[AgentType, PromptTemplate] = {
    AgentType.RESEARCH: RESEARCH_PROMPT,
    AgentType.IMPLEMENT: IMPLEMENT_PROMPT,
    AgentType.TEST: TEST_PROMPT,
    AgentType.REVIEW: REVIEW_PROMPT,
}

SUB_TASK_REQUEST = PromptTemplate(
    name="sub_task_request",
    description="User message for a single sub-task",
    template="## Task: {title}\n\n{description}",
    variables=["title", "description"],
)

DEPENDENCY_CONTEXT_BLOCK = PromptTemplate(
    name="dependency_context",
    description="Outputs of completed dependencies appended to a sub-task request",
    template="\n\n## Context from previous steps:\n{context}",
    variables=["context"],
)


# =============================================================================
# SYNTHESIS
# =============================================================================


SYNTHESIS_PROMPT = PromptTemplate(
    name="synthesis",
    description="System instruction for condensing sub-task outputs",
    template=(
        "You synthesize results from multiple agent sub-tasks into a coherent summary. "
        "Be concise and actionable."
    ),
)

SYNTHESIS_REQUEST = PromptTemplate(
    name="synthesis_request",
    description="User message carrying completed sub-task outputs",
    template="Synthesize these sub-task results into a coherent summary:\n\n{task_outputs}",
    variables=["task_outputs"],
)

NO_TASKS_COMPLETED = "No tasks completed."


# =============================================================================
# TEMPLATE REGISTRY
# =============================================================================


ALL_TEMPLATES: dict[str, PromptTemplate] = {
    # Decomposition
    "decompose": DECOMPOSE_PROMPT,
    "project_context": PROJECT_CONTEXT_BLOCK,
    "decompose_request": DECOMPOSE_REQUEST,
    # Agent roles
    **{role.value: template for role, template in AGENT_PROMPTS.items()},
    "sub_task_request": SUB_TASK_REQUEST,
    "dependency_context": DEPENDENCY_CONTEXT_BLOCK,
    # Synthesis
    "synthesis": SYNTHESIS_PROMPT,
    "synthesis_request": SYNTHESIS_REQUEST,
}


def get_agent_prompt(role: AgentType | str) -> PromptTemplate:
    """Get the instruction template for an agent role.

    Args:
        role: Agent role; unknown values resolve to the implement role.

    Returns:
        PromptTemplate for the role.
    """
    return AGENT_PROMPTS[AgentType.coerce(role)]


def get_template(name: str) -> PromptTemplate | None:
    """Get a template by name.

    Args:
        name: Template name.

    Returns:
        PromptTemplate if found, None otherwise.
    """
    return ALL_TEMPLATES.get(name)


def list_templates() -> list[str]:
    """List all available template names."""
    return list(ALL_TEMPLATES.keys())

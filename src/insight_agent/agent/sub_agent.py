from __future__ import annotations

from typing import Annotated, Any, Dict, List, Optional, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import (
    AIMessage,
    AnyMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)
from langchain_core.tools import BaseTool
from langgraph.graph import END, StateGraph
from langgraph.graph.message import add_messages
from pydantic import BaseModel, ConfigDict, Field

from insight_agent.agent.prompts import get_db_schema_prompt
from insight_agent.agent.tools import RUN_SQL_TOOL_NAME, build_run_sql_tool
from insight_agent.common.errors import ErrorCode
from insight_agent.common.event_logger import EventLogger, event_logger as default_event_logger
from insight_agent.common.logger import get_logger, trace_context
from insight_agent.execution.contracts import ExecutionSuccess
from insight_agent.execution.executor import GuardedExecutor

logger = get_logger("db_sub_agent")

DEFAULT_MAX_STEPS = 5


class SubAgentState(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    messages: Annotated[List[AnyMessage], add_messages] = Field(default_factory=list)
    step_count: int = Field(default=0, description="Model calls made so far.")


class AgentStep(BaseModel):
    """One model call and the tool results it produced."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    text: str = ""
    tool_results: List[ToolMessage] = Field(default_factory=list)


class SubAgentResult(BaseModel):
    """What the DB sub-agent hands back to its caller.

    ``data``, ``columns`` and ``row_count`` come from the last successful
    ``run_sql`` call and stay ``None`` when no call succeeded.
    """

    answer: str = ""
    data: Optional[List[Dict[str, Any]]] = None
    columns: Optional[List[str]] = None
    row_count: Optional[int] = None
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"answer": self.answer}
        if self.data is not None:
            payload["data"] = self.data
        if self.columns is not None:
            payload["columns"] = self.columns
        if self.row_count is not None:
            payload["rowCount"] = self.row_count
        if self.error is not None:
            payload["error"] = self.error
        return payload


def compose_user_message(question: str, context: str = "") -> str:
    """Builds the single user turn sent to the model."""
    parts = [f"Context: {context}" if context else "", f"Question: {question}"]
    return "\n\n".join(p for p in parts if p)


def message_text(message: BaseMessage) -> str:
    """Returns the plain text of a message whose content may be a list of blocks."""
    content = message.content
    if isinstance(content, str):
        return content
    chunks = []
    for block in content:
        if isinstance(block, str):
            chunks.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            chunks.append(block.get("text", ""))
    return "".join(chunks)


def split_steps(messages: Sequence[BaseMessage]) -> List[AgentStep]:
    """Groups a message history into model steps.

    Each AIMessage opens a step; the ToolMessages after it belong to that step.
    """
    steps: List[AgentStep] = []
    for message in messages:
        if isinstance(message, AIMessage):
            steps.append(AgentStep(text=message_text(message)))
        elif isinstance(message, ToolMessage) and steps:
            steps[-1].tool_results.append(message)
    return steps


def find_last_successful_result(
    steps: Sequence[AgentStep], tool_name: str = RUN_SQL_TOOL_NAME
) -> Optional[ExecutionSuccess]:
    """Finds the result to report back to the caller.

    Steps are walked newest first; within the first step that has one, the
    earliest successful ``tool_name`` result wins.
    """
    for step in reversed(steps):
        for tool_message in step.tool_results:
            if tool_message.name == tool_name and isinstance(tool_message.artifact, ExecutionSuccess):
                return tool_message.artifact
    return None


def count_tool_calls(steps: Sequence[AgentStep], tool_name: str = RUN_SQL_TOOL_NAME) -> int:
    """Counts the results ``tool_name`` produced across all steps."""
    return sum(1 for step in steps for message in step.tool_results if message.name == tool_name)


class DbSubAgent:
    """Answers a data question by letting a model call ``run_sql``.

    Graph Flow:
    model -> (tool calls?) -> tools -> model -> ... -> END

    The loop ends when the model answers without calling a tool or after
    ``max_steps`` model calls, whichever comes first. Tool calls inside a step
    run one at a time, in the order the model issued them.

    Attributes:
        llm (BaseChatModel): The chat model, before tool binding.
        executor (GuardedExecutor): The executor behind ``run_sql``.
        system_prompt (str): Schema documentation sent as the system message.
        max_steps (int): Ceiling on model calls per question.
    """

    def __init__(
        self,
        llm: BaseChatModel,
        executor: GuardedExecutor,
        system_prompt: Optional[str] = None,
        max_steps: int = DEFAULT_MAX_STEPS,
        audit: Optional[EventLogger] = None,
    ):
        if max_steps <= 0:
            raise ValueError(f"max_steps must be positive, got {max_steps}")
        self.llm = llm
        self.executor = executor
        self.system_prompt = system_prompt if system_prompt is not None else get_db_schema_prompt()
        self.max_steps = max_steps
        self.audit = audit or default_event_logger

        run_sql_tool = build_run_sql_tool(executor)
        self.tools: Dict[str, BaseTool] = {run_sql_tool.name: run_sql_tool}
        self.bound_llm = llm.bind_tools([run_sql_tool])
        self.graph = self._build_graph()

    def _build_graph(self):
        graph = StateGraph(SubAgentState)

        graph.add_node("model", self._call_model)
        graph.add_node("tools", self._call_tools)

        graph.set_entry_point("model")

        graph.add_conditional_edges(
            "model",
            self._route_after_model,
            {"tools": "tools", "end": END},
        )
        graph.add_conditional_edges(
            "tools",
            self._route_after_tools,
            {"model": "model", "end": END},
        )

        return graph.compile()

    async def _call_model(self, state: SubAgentState) -> Dict[str, Any]:
        messages = [SystemMessage(content=self.system_prompt), *state.messages]
        response = await self.bound_llm.ainvoke(messages)
        step = state.step_count + 1
        tool_calls = getattr(response, "tool_calls", None) or []
        logger.info(f"Step {step}/{self.max_steps}: model requested {len(tool_calls)} tool call(s).")
        return {"messages": [response], "step_count": step}

    async def _call_tools(self, state: SubAgentState) -> Dict[str, Any]:
        last = state.messages[-1]
        results: List[ToolMessage] = []
        for call in last.tool_calls:
            tool = self.tools.get(call["name"])
            if tool is None:
                results.append(ToolMessage(
                    content=f"Unknown tool: {call['name']}",
                    tool_call_id=call["id"],
                    name=call["name"],
                    status="error",
                ))
                continue
            try:
                message = await tool.ainvoke({**call, "type": "tool_call"})
            except Exception as exc:
                logger.error(f"Tool '{call['name']}' raised: {exc}")
                message = ToolMessage(
                    content=f"Tool execution failed: {exc}",
                    tool_call_id=call["id"],
                    name=call["name"],
                    status="error",
                )
            results.append(message)
        return {"messages": results}

    def _route_after_model(self, state: SubAgentState) -> str:
        last = state.messages[-1]
        if isinstance(last, AIMessage) and last.tool_calls:
            return "tools"
        return "end"

    def _route_after_tools(self, state: SubAgentState) -> str:
        if state.step_count >= self.max_steps:
            return "end"
        return "model"

    async def answer(self, question: str, context: str = "") -> SubAgentResult:
        """Answers one question.

        Args:
            question (str): The data question.
            context (str): Optional conversation context from the parent agent.

        Returns:
            SubAgentResult: The model's final text, plus the rows of the last
            successful ``run_sql`` call if there was one. Never raises for
            model or database failures.
        """
        with trace_context():
            initial = {"messages": [HumanMessage(content=compose_user_message(question, context))]}
            try:
                final_state = await self.graph.ainvoke(
                    initial,
                    config={"recursion_limit": 2 * self.max_steps + 2},
                )
            except Exception as exc:
                logger.error(f"DB sub-agent failed ({ErrorCode.LLM_FAILURE.value}): {exc}")
                return SubAgentResult(answer="", error=f"Sub-agent failed: {exc}")

            messages = final_state["messages"]
            steps = split_steps(messages)
            last_ai = next((m for m in reversed(messages) if isinstance(m, AIMessage)), None)
            answer = message_text(last_ai) if last_ai is not None else ""

            success = find_last_successful_result(steps)
            if success is None:
                attempts = count_tool_calls(steps)
                if attempts:
                    step_count = final_state.get("step_count", len(steps))
                    logger.warning(
                        f"No successful {RUN_SQL_TOOL_NAME} call after {attempts} attempt(s) "
                        f"in {step_count} step(s)."
                    )
                    self.audit.log_event(
                        "sub_agent_exhausted",
                        {
                            "error_code": ErrorCode.ORCHESTRATION_EXHAUSTED.value,
                            "question": question,
                            "steps": step_count,
                            "attempts": attempts,
                            "hit_step_limit": step_count >= self.max_steps,
                        },
                    )
                return SubAgentResult(answer=answer)

            return SubAgentResult(
                answer=answer,
                data=list(success.rows),
                columns=list(success.columns),
                row_count=success.row_count,
            )

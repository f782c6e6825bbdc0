"""Conditional routing functions for the LangGraph workflow."""

from workflow.state import NovelWorkflowState


def route_after_init(state: NovelWorkflowState) -> str:
    """Route after initialization: plan an outline unless one was supplied."""
    if state.get("outline") is not None:
        return "write_chapter"
    return "plan_outline"


def route_after_outline(state: NovelWorkflowState) -> str:
    """Route after plan_outline: outline_only mode ends here."""
    if state.get("mode") == "outline_only":
        return "__end__"
    return "write_chapter"


def route_after_advance(state: NovelWorkflowState) -> str:
    """Route after advancing: next chapter, or cover once all are written."""
    outline = state.get("outline")
    total = len(outline.chapters) if outline else 0
    if state.get("current_index", 0) < total:
        return "write_chapter"
    return "generate_cover"

"""LangGraph StateGraph: orchestrates outline, chapters and cover in order."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from langchain_core.runnables import RunnableConfig
from langgraph.graph import StateGraph, END

from agents.chapter_agent import ChapterAgent
from agents.outline_agent import OutlineAgent
from config.exceptions import GenerationCancelledError
from models.enums import PipelineStage
from models.novel import Novel
from tools.cancellation import CancelToken, run_cancellable
from tools.cover_client import CoverClient

from workflow.callbacks import GenerationCallback
from workflow.state import NovelWorkflowState
from workflow.conditions import (
    route_after_init,
    route_after_outline,
    route_after_advance,
)

logger = logging.getLogger(__name__)


@dataclass
class WorkflowContext:
    """Runtime collaborators for one graph invocation.

    Passed to nodes through ``config["configurable"]["context"]``.
    """
    outline_agent: OutlineAgent
    chapter_agent: ChapterAgent
    cover_client: Optional[CoverClient]
    callback: GenerationCallback
    cancel_token: CancelToken
    set_stage: Callable[[PipelineStage], None]


def _context(config: RunnableConfig) -> WorkflowContext:
    return config["configurable"]["context"]


# ---------------------------------------------------------------------------
# Node functions
# ---------------------------------------------------------------------------

async def initialize(state: NovelWorkflowState, config: RunnableConfig) -> dict:
    """Reset per-run chapter tracking."""
    logger.info("Entering node: initialize")
    _context(config).cancel_token.raise_if_cancelled()
    request = state["request"]
    logger.info(
        "Initializing workflow: mode=%s, genre=%s, outline supplied=%s",
        state.get("mode", "full"), request.genre, state.get("outline") is not None,
    )
    return {
        "current_index": 0,
        "chapters": [],
        "cover_image_url": None,
    }


async def plan_outline(state: NovelWorkflowState, config: RunnableConfig) -> dict:
    """Stream and parse the chapter outline."""
    logger.info("Entering node: plan_outline")
    ctx = _context(config)
    ctx.set_stage(PipelineStage.OUTLINING)
    ctx.cancel_token.raise_if_cancelled()

    outline = await ctx.outline_agent.generate_outline(
        state["request"],
        on_update=ctx.callback.on_outline_update,
        cancel_token=ctx.cancel_token,
    )

    ctx.set_stage(PipelineStage.OUTLINE_READY)
    return {"outline": outline}


async def write_chapter(state: NovelWorkflowState, config: RunnableConfig) -> dict:
    """Generate the current chapter with the chapter agent's retry budget."""
    logger.info("Entering node: write_chapter")
    ctx = _context(config)
    index = state["current_index"]
    if index == 0:
        ctx.set_stage(PipelineStage.GENERATING_CHAPTERS)
    ctx.cancel_token.raise_if_cancelled()

    outline = state["outline"]
    previous = state.get("chapters", [])
    chapter = await ctx.chapter_agent.generate(
        index,
        outline.chapters[index],
        state["request"],
        outline,
        previous,
        on_text_update=ctx.callback.on_chapter_update,
        on_status_update=ctx.callback.on_chapter_status,
        cancel_token=ctx.cancel_token,
    )

    ctx.callback.on_chapter_complete(chapter, len(outline.chapters))
    return {"chapters": previous + [chapter]}


async def advance_chapter(state: NovelWorkflowState, config: RunnableConfig) -> dict:
    """Advance to the next chapter index."""
    next_index = state["current_index"] + 1
    total = len(state["outline"].chapters)
    if next_index >= total:
        logger.info("All %d chapters completed", total)
    else:
        logger.info("Advancing to chapter %d/%d", next_index + 1, total)
    return {"current_index": next_index}


async def generate_cover(state: NovelWorkflowState, config: RunnableConfig) -> dict:
    """Generate the cover image. Failures are non-fatal."""
    logger.info("Entering node: generate_cover")
    ctx = _context(config)
    ctx.set_stage(PipelineStage.GENERATING_COVER)
    ctx.cancel_token.raise_if_cancelled()

    if ctx.cover_client is None:
        logger.info("No cover client configured, skipping cover")
        ctx.callback.on_cover_complete(None)
        return {"cover_image_url": None}

    ctx.callback.on_cover_start()
    outline = state["outline"]
    cover_url = None
    try:
        cover_url = await run_cancellable(
            ctx.cover_client.generate_cover(
                outline.title, state["request"].genre, outline.description,
            ),
            ctx.cancel_token,
        )
    except GenerationCancelledError:
        raise
    except Exception as e:
        logger.warning("Cover generation failed (non-fatal): %s", e)

    ctx.callback.on_cover_complete(cover_url)
    return {"cover_image_url": cover_url}


async def finalize(state: NovelWorkflowState, config: RunnableConfig) -> dict:
    """Assemble the finished Novel."""
    logger.info("Entering node: finalize")
    request = state["request"]
    outline = state["outline"]
    novel = Novel(
        title=outline.title,
        description=outline.description,
        genre=request.genre,
        style=request.style,
        chapters=list(state.get("chapters", [])),
        cover_image_url=state.get("cover_image_url"),
    )
    logger.info(
        "Novel '%s' finished: %d chapters, %d chars, cover=%s",
        novel.title, len(novel.chapters), novel.total_words, bool(novel.cover_image_url),
    )
    _context(config).set_stage(PipelineStage.COMPLETE)
    return {"novel": novel}


# ---------------------------------------------------------------------------
# Graph construction
# ---------------------------------------------------------------------------

def build_graph():
    """Build and return the compiled LangGraph workflow."""
    graph = StateGraph(NovelWorkflowState)

    graph.add_node("initialize", initialize)
    graph.add_node("plan_outline", plan_outline)
    graph.add_node("write_chapter", write_chapter)
    graph.add_node("advance_chapter", advance_chapter)
    graph.add_node("generate_cover", generate_cover)
    graph.add_node("finalize", finalize)

    graph.set_entry_point("initialize")

    # Conditional: after init -> plan_outline, or straight to chapters
    graph.add_conditional_edges(
        "initialize",
        route_after_init,
        {
            "plan_outline": "plan_outline",
            "write_chapter": "write_chapter",
        },
    )

    # plan_outline -> write_chapter (full run) or END (outline only)
    graph.add_conditional_edges(
        "plan_outline",
        route_after_outline,
        {
            "write_chapter": "write_chapter",
            "__end__": END,
        },
    )

    graph.add_edge("write_chapter", "advance_chapter")

    # Conditional: after advance -> next chapter or cover
    graph.add_conditional_edges(
        "advance_chapter",
        route_after_advance,
        {
            "write_chapter": "write_chapter",
            "generate_cover": "generate_cover",
        },
    )

    graph.add_edge("generate_cover", "finalize")
    graph.add_edge("finalize", END)

    return graph.compile()


def recursion_limit_for(chapter_count: int) -> int:
    """Graph step budget: two nodes per chapter plus fixed overhead."""
    return max(50, chapter_count * 3 + 20)

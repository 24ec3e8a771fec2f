# main.py
from dataclasses import asdict
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from config import ANTHROPIC_API_KEY, GROQ_API_KEY, CLAUDE_MODELS, GROQ_MODELS, DEFAULT_MODEL
from database import get_project, get_document, update_document_content, snapshot_document_version
from agents.document_agent import stream_document_edit
from agents.tools.document_tools import SelectionContext, execute_document_tool
from agents.tools.selection import RenderedSelection, reconcile_selection, text_nodes_from_html

app = FastAPI(title="Skribe Document AI Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class SelectionContextIn(BaseModel):
    text: str
    start_offset: int
    end_offset: int

    def to_context(self) -> SelectionContext:
        return SelectionContext(text=self.text, start_offset=self.start_offset, end_offset=self.end_offset)


class ChatMessage(BaseModel):
    role: str
    content: str


class DocumentAIRequest(BaseModel):
    document_id: str
    project_id: str
    user_id: str
    message: str
    document_content: str  # the editor's text, may include unsaved edits
    selection_context: Optional[SelectionContextIn] = None
    message_history: list[ChatMessage] = []
    model: str = DEFAULT_MODEL


class SelectionRequest(BaseModel):
    content: str
    text: str
    text_nodes: list[str] = []
    rendered_html: Optional[str] = None
    start_node: Optional[int] = None
    start_offset: int = 0
    anchor_node: Optional[int] = None
    focus_node: Optional[int] = None
    enabled: bool = True


class ApplyUpdateRequest(BaseModel):
    project_id: str
    user_id: str
    content: str


class ToolExecuteRequest(BaseModel):
    tool_name: str
    tool_input: dict = {}
    document_content: str
    selection_context: Optional[SelectionContextIn] = None


def _load_owned_document(project_id: str, document_id: str, user_id: str) -> dict:
    project = get_project(project_id)
    if not project or project.get("user_id") != user_id:
        raise HTTPException(status_code=403, detail="Forbidden: Project not found or you do not have access")

    document = get_document(document_id)
    if not document or document.get("project_id") != project_id:
        raise HTTPException(status_code=403, detail="Forbidden: Document not found or you do not have access")

    return document


def _check_model_available(model_id: str):
    if model_id in CLAUDE_MODELS:
        api_key = ANTHROPIC_API_KEY
    elif model_id in GROQ_MODELS:
        api_key = GROQ_API_KEY
    else:
        raise HTTPException(status_code=400, detail=f"Unknown model: {model_id}")

    if not api_key:
        raise HTTPException(status_code=500, detail=f"API key not configured for {model_id}")


@app.get("/")
def health():
    return {"status": "ok", "service": "skribe-document-ai"}


@app.post("/document-ai")
def document_ai(req: DocumentAIRequest):
    """
    Streams the assistant reply as plain text. Document updates produced by
    tool calls are interleaved as JSON lines of type DOCUMENT_UPDATE.
    """
    try:
        if not req.message.strip():
            raise HTTPException(status_code=400, detail="Missing required field: message")

        document = _load_owned_document(req.project_id, req.document_id, req.user_id)
        _check_model_available(req.model)

        stream = stream_document_edit(
            document=document,
            document_content=req.document_content,
            message=req.message,
            message_history=[m.model_dump() for m in req.message_history],
            selection_context=req.selection_context.to_context() if req.selection_context else None,
            model_id=req.model,
        )

        return StreamingResponse(
            stream,
            media_type="text/plain; charset=utf-8",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    except HTTPException:
        raise
    except Exception as e:
        print(f"[DOCUMENT AI API ERROR] {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/selection/reconcile")
def selection_reconcile(req: SelectionRequest):
    text_nodes = req.text_nodes
    if not text_nodes and req.rendered_html:
        text_nodes = text_nodes_from_html(req.rendered_html)

    selection = RenderedSelection(
        text=req.text,
        text_nodes=text_nodes,
        start_node=req.start_node,
        start_offset=req.start_offset,
        anchor_node=req.anchor_node,
        focus_node=req.focus_node,
    )
    context = reconcile_selection(req.content, selection, enabled=req.enabled)
    if context is None:
        return {"selection": None}

    return {
        "selection": {
            "text": context.text,
            "start_offset": context.start_offset,
            "end_offset": context.end_offset,
        }
    }


@app.post("/documents/{document_id}/apply")
def apply_update(document_id: str, req: ApplyUpdateRequest):
    """Persists an update the user accepted from the document AI."""
    try:
        document = _load_owned_document(req.project_id, document_id, req.user_id)

        changed = update_document_content(document_id, req.content, document.get("content"))
        if changed:
            snapshot_document_version(document_id, req.content, trigger_type="ai_edit")

        return {"status": "applied", "changed": changed}

    except HTTPException:
        raise
    except Exception as e:
        print(f"[APPLY UPDATE ERROR] {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/tools/execute")
def tools_execute(req: ToolExecuteRequest):
    """Runs a single edit tool without touching stored documents."""
    result = execute_document_tool(
        req.tool_name,
        req.tool_input,
        req.document_content,
        req.selection_context.to_context() if req.selection_context else None,
    )
    return asdict(result)

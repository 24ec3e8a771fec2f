# database.py
from supabase import create_client, Client
from config import SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY
from typing import Optional

supabase: Client = create_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)


# ─── Projects ────────────────────────────────────────────────────────────────

def get_project(project_id: str) -> Optional[dict]:
    res = (
        supabase.table("projects")
        .select("id, user_id, name")
        .eq("id", project_id)
        .limit(1)
        .execute()
    )
    return res.data[0] if res.data else None


# ─── Documents ───────────────────────────────────────────────────────────────

def get_document(document_id: str) -> Optional[dict]:
    res = (
        supabase.table("documents")
        .select("*")
        .eq("id", document_id)
        .limit(1)
        .execute()
    )
    return res.data[0] if res.data else None


def update_document_content(document_id: str, content: str, previous_content: str = None) -> bool:
    """
    Writes new document content. Marks the document for re-sync when the
    content actually changed. Returns whether it changed.
    """
    changed = content != previous_content
    updates = {
        "content": content,
        "updated_at": "now()"
    }
    if changed:
        updates["sync_status"] = "pending"

    supabase.table("documents").update(updates).eq("id", document_id).execute()
    return changed


def snapshot_document_version(document_id: str, content: str, trigger_type: str = "ai_edit") -> Optional[int]:
    """
    Records `content` as the next version of the document. Skipped when the
    latest version already holds the same content. Returns the new version
    number, or None when nothing was recorded.
    """
    res = (
        supabase.table("document_versions")
        .select("version_num, content")
        .eq("document_id", document_id)
        .order("version_num", desc=True)
        .limit(1)
        .execute()
    )
    latest = res.data[0] if res.data else None
    if latest and latest.get("content") == content:
        return None

    next_version = latest["version_num"] + 1 if latest else 1
    supabase.table("document_versions").insert({
        "document_id": document_id,
        "content": content,
        "version_num": next_version,
        "trigger_type": trigger_type
    }).execute()
    return next_version

"""Wiring of stores and services shared by the API routers."""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from nexus.ai.provider import CompletionProvider, GeminiProvider
from nexus.ai.proxy import AIProxy
from nexus.auth.admin import AdminGate
from nexus.auth.passwords import PasswordHasher
from nexus.auth.service import AuthService
from nexus.config import Settings
from nexus.db import ContentStore, KeyValueStore, SessionStore, UserStore, create_kv
from nexus.db.sessions import _utcnow
from nexus.ledger import CreditLedger
from nexus.storage import ObjectStorage, create_storage


@dataclass
class Services:
    kv: KeyValueStore
    storage: ObjectStorage
    users: UserStore
    sessions: SessionStore
    content: ContentStore
    auth: AuthService
    ledger: CreditLedger
    ai: AIProxy
    admin: AdminGate


def build_services(
    settings: Settings,
    kv: Optional[KeyValueStore] = None,
    storage: Optional[ObjectStorage] = None,
    provider: Optional[CompletionProvider] = None,
    hasher: Optional[PasswordHasher] = None,
    clock: Callable[[], datetime] = _utcnow,
) -> Services:
    """Build every service from settings; any collaborator can be injected."""
    if kv is None:
        kv = create_kv(settings)
    if storage is None:
        storage = create_storage(settings)
    provider = provider or GeminiProvider(
        model=settings.gemini_model,
        temperature=settings.ai_temperature,
    )

    users = UserStore(kv)
    sessions = SessionStore(kv, ttl=timedelta(days=settings.session_ttl_days), clock=clock)
    content = ContentStore(kv)
    auth = AuthService(
        users,
        sessions,
        hasher or PasswordHasher(),
        starting_credits=settings.starting_credits,
    )
    ledger = CreditLedger(users)
    ai = AIProxy(auth, ledger, content, provider, default_api_key=settings.gemini_api_key)

    return Services(
        kv=kv,
        storage=storage,
        users=users,
        sessions=sessions,
        content=content,
        auth=auth,
        ledger=ledger,
        ai=ai,
        admin=AdminGate(settings.admin_password),
    )

"""Data access for users, tenants, customers, conversations and messages.

Every public method runs in its own short transaction (``engine.begin()``);
nothing here holds a transaction open across calls.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Engine, and_, case, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError

from supportdesk.db.schema import conversations, customers, messages, tenants, users
from supportdesk.models.chat import (
    Conversation,
    ConversationFilters,
    Customer,
    Message,
    MessageRole,
    RecentActivity,
    Tenant,
    User,
    VisitorConversation,
)
from supportdesk.utils.ids import generate_id
from supportdesk.utils.logging import get_logger

logger = get_logger(__name__)

_ROLE_TO_SENDER = {"user": "user", "assistant": "ai"}


def utcnow() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _row_to_user(row: Any) -> User:
    return User(
        id=row.id,
        email=row.email,
        phone=row.phone,
        password_hash=row.password_hash,
        name=row.name,
        role=row.role,
        auth_provider=row.auth_provider,
        auth_provider_id=row.auth_provider_id,
        fingerprint_id=row.fingerprint_id,
        email_verified=bool(row.email_verified),
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _row_to_tenant(row: Any) -> Tenant:
    return Tenant(
        id=row.id,
        slug=row.slug,
        name=row.name,
        owner_id=row.owner_id,
        settings=row.settings or {},
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _row_to_customer(row: Any) -> Customer:
    return Customer(
        id=row.id,
        tenant_id=row.tenant_id,
        visitor_id=row.visitor_id,
        user_id=row.user_id,
        email=row.email,
        name=row.name,
        metadata=row._mapping["metadata"] or {},
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _row_to_conversation(row: Any) -> Conversation:
    return Conversation(
        id=row.id,
        tenant_id=row.tenant_id,
        customer_id=row.customer_id,
        status=row.status or "active",
        is_lead=bool(row.is_lead),
        lead_converted_at=_as_utc(row.lead_converted_at),
        metadata=row._mapping["metadata"] or {},
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _row_to_message(row: Any) -> Message:
    proposed_actions = (row._mapping["metadata"] or {}).get("proposedActions")
    return Message(
        id=row.id,
        conversation_id=row.conversation_id,
        role="assistant" if row.sender == "ai" else "user",
        content=row.text,
        timestamp=_as_utc(row.created_at),
        proposed_actions=proposed_actions,
    )


class UserRepository:
    """Registered owners, admins and customers."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def find_by_id(self, user_id: str) -> User | None:
        with self.engine.begin() as conn:
            row = conn.execute(select(users).where(users.c.id == user_id)).first()
        return _row_to_user(row) if row else None

    def find_by_email(self, email: str) -> User | None:
        with self.engine.begin() as conn:
            row = conn.execute(select(users).where(users.c.email == email.lower())).first()
        return _row_to_user(row) if row else None

    def create(
        self,
        *,
        email: str | None,
        password_hash: str | None,
        name: str | None,
        role: str,
        auth_provider: str = "credentials",
        fingerprint_id: str | None = None,
    ) -> User:
        now = utcnow()
        values = {
            "id": generate_id(),
            "email": email.lower() if email else None,
            "password_hash": password_hash,
            "name": name,
            "role": role,
            "auth_provider": auth_provider,
            "fingerprint_id": fingerprint_id,
            "email_verified": False,
            "metadata": {},
            "created_at": now,
            "updated_at": now,
        }
        with self.engine.begin() as conn:
            conn.execute(insert(users).values(**values))
            row = conn.execute(select(users).where(users.c.id == values["id"])).one()
        return _row_to_user(row)


class TenantRepository:
    """Businesses, addressed publicly by slug."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def find_by_id(self, tenant_id: str) -> Tenant | None:
        with self.engine.begin() as conn:
            row = conn.execute(select(tenants).where(tenants.c.id == tenant_id)).first()
        return _row_to_tenant(row) if row else None

    def find_by_slug(self, slug: str) -> Tenant | None:
        with self.engine.begin() as conn:
            row = conn.execute(select(tenants).where(tenants.c.slug == slug.lower())).first()
        return _row_to_tenant(row) if row else None

    def find_by_owner_id(self, owner_id: str) -> Tenant | None:
        with self.engine.begin() as conn:
            row = conn.execute(select(tenants).where(tenants.c.owner_id == owner_id)).first()
        return _row_to_tenant(row) if row else None

    def create(self, *, owner_id: str, name: str, slug: str, settings: dict[str, Any] | None = None) -> Tenant:
        now = utcnow()
        values = {
            "id": generate_id(),
            "owner_id": owner_id,
            "name": name,
            "slug": slug.lower(),
            "settings": settings or {},
            "metadata": {},
            "created_at": now,
            "updated_at": now,
        }
        with self.engine.begin() as conn:
            conn.execute(insert(tenants).values(**values))
            row = conn.execute(select(tenants).where(tenants.c.id == values["id"])).one()
        return _row_to_tenant(row)


class CustomerRepository:
    """Per-tenant visitor identities."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def find_by_id(self, customer_id: str) -> Customer | None:
        with self.engine.begin() as conn:
            row = conn.execute(select(customers).where(customers.c.id == customer_id)).first()
        return _row_to_customer(row) if row else None

    def find_by_visitor_id(self, tenant_id: str, visitor_id: str) -> Customer | None:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(customers).where(and_(customers.c.tenant_id == tenant_id, customers.c.visitor_id == visitor_id))
            ).first()
        return _row_to_customer(row) if row else None

    def find_by_user_id(self, user_id: str) -> list[Customer]:
        with self.engine.begin() as conn:
            rows = conn.execute(select(customers).where(customers.c.user_id == user_id)).all()
        return [_row_to_customer(row) for row in rows]

    def find_or_create(self, tenant_id: str, visitor_id: str) -> Customer:
        """Return the customer for ``(tenant_id, visitor_id)``, creating it once."""
        existing = self.find_by_visitor_id(tenant_id, visitor_id)
        if existing:
            return existing

        now = utcnow()
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    insert(customers).values(
                        id=generate_id(),
                        tenant_id=tenant_id,
                        visitor_id=visitor_id,
                        metadata={},
                        created_at=now,
                        updated_at=now,
                    )
                )
        except IntegrityError:
            # Created concurrently by another request.
            logger.debug(f"Customer for visitor {visitor_id} already exists in tenant {tenant_id}")

        customer = self.find_by_visitor_id(tenant_id, visitor_id)
        if customer is None:
            raise RuntimeError(f"Failed to create customer for visitor {visitor_id}")
        return customer

    def link_all_by_visitor_to_user(self, visitor_id: str, user_id: str) -> int:
        """Attach every anonymous customer record of a visitor to a user."""
        with self.engine.begin() as conn:
            result = conn.execute(
                update(customers)
                .where(and_(customers.c.visitor_id == visitor_id, customers.c.user_id.is_(None)))
                .values(user_id=user_id, updated_at=utcnow())
            )
        return result.rowcount


class ConversationRepository:
    """Conversations and the owner/visitor views over them."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def create(
        self,
        *,
        tenant_id: str | None = None,
        customer_id: str | None = None,
        is_lead: bool = True,
    ) -> Conversation:
        now = utcnow()
        values = {
            "id": generate_id(),
            "tenant_id": tenant_id,
            "customer_id": customer_id,
            "status": "active",
            "is_lead": is_lead,
            "metadata": {},
            "created_at": now,
            "updated_at": now,
        }
        with self.engine.begin() as conn:
            conn.execute(insert(conversations).values(**values))
            row = conn.execute(select(conversations).where(conversations.c.id == values["id"])).one()
        return _row_to_conversation(row)

    def get(self, conversation_id: str) -> Conversation | None:
        with self.engine.begin() as conn:
            row = conn.execute(select(conversations).where(conversations.c.id == conversation_id)).first()
        return _row_to_conversation(row) if row else None

    def get_with_customer(self, conversation_id: str) -> Conversation | None:
        conversation = self.get(conversation_id)
        if conversation is None or conversation.customer_id is None:
            return conversation

        with self.engine.begin() as conn:
            row = conn.execute(select(customers).where(customers.c.id == conversation.customer_id)).first()
        if row:
            conversation.customer = _row_to_customer(row)
        return conversation

    def find_active_by_tenant_and_customer(self, tenant_id: str, customer_id: str) -> Conversation | None:
        """Latest active conversation of a customer within a tenant."""
        with self.engine.begin() as conn:
            row = conn.execute(
                select(conversations)
                .where(
                    and_(
                        conversations.c.tenant_id == tenant_id,
                        conversations.c.customer_id == customer_id,
                        conversations.c.status == "active",
                    )
                )
                .order_by(conversations.c.updated_at.desc())
                .limit(1)
            ).first()
        return _row_to_conversation(row) if row else None

    def find_by_customer_id(self, customer_id: str) -> list[Conversation]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(conversations)
                .where(conversations.c.customer_id == customer_id)
                .order_by(conversations.c.updated_at.desc())
            ).all()
        return [_row_to_conversation(row) for row in rows]

    def find_by_visitor_across_tenants(
        self,
        visitor_id: str,
        *,
        limit: int = 5,
        status: str | None = "active",
        include_conversation_id: str | None = None,
    ) -> list[VisitorConversation]:
        """Conversations of a visitor in every tenant, most recent first.

        ``include_conversation_id`` is returned even when it falls outside the
        status filter or the limit, provided it belongs to the visitor.
        """
        base = (
            select(
                conversations.c.id,
                conversations.c.status,
                conversations.c.updated_at,
                tenants.c.slug.label("tenant_slug"),
                tenants.c.name.label("tenant_name"),
            )
            .select_from(
                conversations.join(customers, conversations.c.customer_id == customers.c.id).join(
                    tenants, conversations.c.tenant_id == tenants.c.id
                )
            )
            .where(customers.c.visitor_id == visitor_id)
        )

        query = base
        if status:
            query = query.where(conversations.c.status == status)
        query = query.order_by(conversations.c.updated_at.desc()).limit(limit)

        with self.engine.begin() as conn:
            rows = list(conn.execute(query).all())
            if include_conversation_id and all(row.id != include_conversation_id for row in rows):
                extra = conn.execute(base.where(conversations.c.id == include_conversation_id)).first()
                if extra:
                    rows.append(extra)

        result = [
            VisitorConversation(
                id=row.id,
                tenant_slug=row.tenant_slug,
                tenant_name=row.tenant_name,
                status=row.status,
                updated_at=_as_utc(row.updated_at),
            )
            for row in rows
        ]
        return sorted(result, key=lambda c: c.updated_at, reverse=True)

    def delete_by_visitor(self, conversation_id: str, visitor_id: str) -> bool:
        """Delete a conversation only if it belongs to the visitor."""
        owned = (
            select(conversations.c.id)
            .select_from(conversations.join(customers, conversations.c.customer_id == customers.c.id))
            .where(and_(conversations.c.id == conversation_id, customers.c.visitor_id == visitor_id))
        )
        with self.engine.begin() as conn:
            if conn.execute(owned).first() is None:
                return False
            conn.execute(delete(messages).where(messages.c.conversation_id == conversation_id))
            conn.execute(delete(conversations).where(conversations.c.id == conversation_id))
        return True

    def touch(self, conversation_id: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                update(conversations).where(conversations.c.id == conversation_id).values(updated_at=utcnow())
            )

    def update_status(self, conversation_id: str, status: str) -> Conversation | None:
        with self.engine.begin() as conn:
            conn.execute(
                update(conversations)
                .where(conversations.c.id == conversation_id)
                .values(status=status, updated_at=utcnow())
            )
        return self.get(conversation_id)

    def convert_lead(self, conversation_id: str) -> Conversation | None:
        now = utcnow()
        with self.engine.begin() as conn:
            conn.execute(
                update(conversations)
                .where(conversations.c.id == conversation_id)
                .values(is_lead=False, lead_converted_at=now, updated_at=now)
            )
        return self.get(conversation_id)

    def list_by_tenant(self, tenant_id: str, filters: ConversationFilters) -> tuple[list[Conversation], int]:
        """Page of a tenant's conversations with a customer preview, plus the total."""
        conditions = [conversations.c.tenant_id == tenant_id]
        if filters.status is not None:
            conditions.append(conversations.c.status == filters.status)
        if filters.is_lead is not None:
            conditions.append(conversations.c.is_lead == filters.is_lead)

        count_query = select(func.count()).select_from(conversations).where(and_(*conditions))
        page_query = (
            select(
                conversations,
                customers.c.email.label("customer_email"),
                customers.c.name.label("customer_name"),
                customers.c.visitor_id.label("customer_visitor_id"),
            )
            .select_from(conversations.outerjoin(customers, conversations.c.customer_id == customers.c.id))
            .where(and_(*conditions))
            .order_by(conversations.c.updated_at.desc())
            .limit(filters.limit)
            .offset(filters.offset)
        )

        with self.engine.begin() as conn:
            total = conn.execute(count_query).scalar_one()
            rows = conn.execute(page_query).all()

        page = []
        for row in rows:
            conversation = _row_to_conversation(row)
            if row.customer_id:
                conversation.customer = Customer(
                    id=row.customer_id,
                    tenant_id=row.tenant_id or "",
                    visitor_id=row.customer_visitor_id,
                    email=row.customer_email,
                    name=row.customer_name,
                )
            page.append(conversation)
        return page, total

    def list_recent(self, limit: int = 50) -> list[Conversation]:
        with self.engine.begin() as conn:
            rows = conn.execute(select(conversations).order_by(conversations.c.updated_at.desc()).limit(limit)).all()
        return [_row_to_conversation(row) for row in rows]

    def delete(self, conversation_id: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(messages).where(messages.c.conversation_id == conversation_id))
            conn.execute(delete(conversations).where(conversations.c.id == conversation_id))

    def get_stats(self, tenant_id: str) -> dict[str, int]:
        """Conversation counters for the owner dashboard."""
        query = select(
            func.count().label("total_conversations"),
            func.coalesce(
                func.sum(case((and_(conversations.c.is_lead.is_(True), conversations.c.status == "active"), 1), else_=0)),
                0,
            ).label("active_leads"),
            func.coalesce(
                func.sum(
                    case(
                        (and_(conversations.c.is_lead.is_(False), conversations.c.lead_converted_at.is_not(None)), 1),
                        else_=0,
                    )
                ),
                0,
            ).label("converted_leads"),
            func.coalesce(func.sum(case((conversations.c.status == "resolved", 1), else_=0)), 0).label(
                "resolved_conversations"
            ),
        ).where(conversations.c.tenant_id == tenant_id)

        with self.engine.begin() as conn:
            row = conn.execute(query).one()
        return {
            "total_conversations": int(row.total_conversations),
            "active_leads": int(row.active_leads),
            "converted_leads": int(row.converted_leads),
            "resolved_conversations": int(row.resolved_conversations),
        }

    def get_recent_activity(self, tenant_id: str, limit: int = 10) -> list[RecentActivity]:
        """Latest message of each recently touched conversation."""
        latest = (
            select(
                messages.c.conversation_id,
                func.max(messages.c.created_at).label("last_at"),
            )
            .group_by(messages.c.conversation_id)
            .subquery()
        )
        activity_at = func.coalesce(latest.c.last_at, conversations.c.updated_at)
        query = (
            select(
                conversations.c.id,
                conversations.c.updated_at,
                customers.c.name.label("customer_name"),
                latest.c.last_at,
            )
            .select_from(
                conversations.outerjoin(customers, conversations.c.customer_id == customers.c.id).outerjoin(
                    latest, latest.c.conversation_id == conversations.c.id
                )
            )
            .where(conversations.c.tenant_id == tenant_id)
            .order_by(activity_at.desc())
            .limit(limit)
        )

        activity: list[RecentActivity] = []
        with self.engine.begin() as conn:
            for row in conn.execute(query).all():
                last_text = None
                if row.last_at is not None:
                    last_text = conn.execute(
                        select(messages.c.text)
                        .where(messages.c.conversation_id == row.id)
                        .order_by(messages.c.created_at.desc())
                        .limit(1)
                    ).scalar()
                activity.append(
                    RecentActivity(
                        conversation_id=row.id,
                        customer_name=row.customer_name,
                        last_message=last_text or "",
                        timestamp=_as_utc(row.last_at or row.updated_at),
                    )
                )
        return activity


class MessageRepository:
    """Append-only chat messages."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def create(
        self,
        conversation_id: str,
        role: MessageRole,
        content: str,
        proposed_actions: list[str] | None = None,
    ) -> Message:
        metadata = {"proposedActions": proposed_actions} if proposed_actions is not None else {}
        values = {
            "id": generate_id(),
            "conversation_id": conversation_id,
            "sender": _ROLE_TO_SENDER[role],
            "text": content,
            "metadata": metadata,
            "created_at": utcnow(),
        }
        with self.engine.begin() as conn:
            conn.execute(insert(messages).values(**values))
            row = conn.execute(select(messages).where(messages.c.id == values["id"])).one()
        return _row_to_message(row)

    def list_by_conversation(self, conversation_id: str) -> list[Message]:
        """Messages of a conversation, oldest first."""
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(messages)
                .where(messages.c.conversation_id == conversation_id)
                .order_by(messages.c.created_at.asc())
            ).all()
        return [_row_to_message(row) for row in rows]


@dataclass
class Repositories:
    """All repositories sharing one engine."""

    users: UserRepository
    tenants: TenantRepository
    customers: CustomerRepository
    conversations: ConversationRepository
    messages: MessageRepository

    @classmethod
    def from_engine(cls, engine: Engine) -> "Repositories":
        return cls(
            users=UserRepository(engine),
            tenants=TenantRepository(engine),
            customers=CustomerRepository(engine),
            conversations=ConversationRepository(engine),
            messages=MessageRepository(engine),
        )

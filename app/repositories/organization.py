from __future__ import annotations

from collections.abc import Collection
from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import MemberRole
from app.models import OrganizationMember, SmsTemplate, UserProfile


class UserProfileRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def by_ids(self, user_ids: Collection[UUID]) -> Sequence[UserProfile]:
        if not user_ids:
            return []
        result = await self.session.scalars(select(UserProfile).where(UserProfile.id.in_(list(user_ids))))
        return result.all()


class OrganizationMemberRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def admins_by_organizations(self, organization_ids: Collection[UUID]) -> Sequence[OrganizationMember]:
        if not organization_ids:
            return []
        stmt = (
            select(OrganizationMember)
            .where(
                OrganizationMember.organization_id.in_(list(organization_ids)),
                OrganizationMember.role == MemberRole.ADMIN.value,
            )
            .order_by(OrganizationMember.created_at.asc(), OrganizationMember.id.asc())
        )
        result = await self.session.scalars(stmt)
        return result.all()


class SmsTemplateRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def by_organizations(self, organization_ids: Collection[UUID]) -> Sequence[SmsTemplate]:
        if not organization_ids:
            return []
        result = await self.session.scalars(
            select(SmsTemplate).where(SmsTemplate.organization_id.in_(list(organization_ids)))
        )
        return result.all()

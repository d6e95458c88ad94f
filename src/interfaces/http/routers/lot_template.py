from __future__ import annotations

from fastapi import APIRouter, Depends

from src.application.use_cases.templates import update_template
from src.infrastructure.auth.context import AuthContext
from src.infrastructure.db.session import SQLAlchemyUnitOfWork
from src.interfaces.http.deps import get_auth_context, get_uow
from src.interfaces.http.schemas.lot_template import LotTemplateResponse, LotTemplateUpdate

router = APIRouter(prefix="/lot-template", tags=["lot-template"])


@router.get("", response_model=LotTemplateResponse)
async def get_lot_template(
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    template = await update_template.get(uow, context.organization_id)
    return LotTemplateResponse.from_domain(template)


@router.put("", response_model=LotTemplateResponse)
async def replace_lot_template(
    payload: LotTemplateUpdate,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    template = await update_template.execute(
        uow,
        context.organization_id,
        context.role,
        [f.to_domain() for f in payload.custom_fields],
    )
    return LotTemplateResponse.from_domain(template)

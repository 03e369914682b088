from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from dispatch.auth.dependencies import get_current_user
from dispatch.db import get_db
from dispatch.models.user import User

router = APIRouter(prefix="/auth", tags=["auth"])


class PinLogin(BaseModel):
    pin_code: str


@router.post("/login")
async def login(request: Request, payload: PinLogin, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(User).where(User.pin_code == payload.pin_code, User.is_active == True)  # noqa: E712
    )
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=401, detail="Invalid PIN")

    request.session["user_id"] = user.id
    request.session["role"] = user.role
    request.session["tenant_id"] = user.tenant_id
    return {"id": user.id, "name": user.name, "role": user.role, "tenant_id": user.tenant_id}


@router.post("/logout")
async def logout(request: Request):
    request.session.clear()
    return {"ok": True}


@router.get("/whoami")
async def whoami(user: User = Depends(get_current_user)):
    return {"id": user.id, "name": user.name, "role": user.role, "tenant_id": user.tenant_id}

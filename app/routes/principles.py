from fastapi import APIRouter, HTTPException

from ..engine.principles import UX_PRINCIPLES, get_principle
from ..schemas import UXPrinciple

router = APIRouter(prefix="/principles", tags=["principles"])


@router.get("", response_model=list[UXPrinciple])
def list_principles():
    return list(UX_PRINCIPLES)


@router.get("/{principle_id}", response_model=UXPrinciple)
def principle_detail(principle_id: str):
    principle = get_principle(principle_id)
    if not principle:
        raise HTTPException(404, "Principle not found")
    return principle

"""Direct model access: list the provider's models and run a single prompt."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from sheetwise.api.schemas import InvokeModelIn, InvokeModelOut, ModelSummary, ModelUsage
from sheetwise.api.services import Services, get_services
from sheetwise.models.llm import InferenceConfig

router = APIRouter(tags=["models"])


@router.get("", response_model=list[ModelSummary], response_model_by_alias=True)
async def list_models(services: Services = Depends(get_services)) -> list[ModelSummary]:
    return [
        ModelSummary(id=m.id, name=m.name, provider=m.provider)
        for m in services.llm.available_models()
    ]


@router.post("/invoke", response_model=InvokeModelOut, response_model_by_alias=True)
async def invoke_model(
    body: InvokeModelIn,
    services: Services = Depends(get_services),
) -> InvokeModelOut:
    """Send one prompt to the configured provider and return its reply."""
    response = await services.llm.invoke(
        body.prompt,
        InferenceConfig(model=body.model, temperature=body.temperature, max_tokens=body.max_tokens),
    )
    usage = response.usage
    return InvokeModelOut(
        content=response.content,
        model=response.model,
        usage=ModelUsage(input_tokens=usage.input_tokens, output_tokens=usage.output_tokens) if usage else None,
    )

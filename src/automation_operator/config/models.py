"""
Service definition model.

A service definition ties a custom resource kind to the APB image and plan
that back it.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ServiceDefinition(BaseModel):
    """One watched resource kind and the APB plan that provisions it."""

    api_version: str = Field(
        ...,
        alias="api-version",
        min_length=1,
        description="Kubernetes apiVersion, $GROUP_NAME/$VERSION (e.g. app.example.com/v1alpha1)",
    )
    kind: str = Field(..., min_length=1, description="CustomResourceDefinition kind (e.g. AppService)")
    image: str = Field(..., min_length=1, description="APB image the apb.yml is read from")
    plan: str = Field(..., min_length=1, description="Plan of the APB this kind provisions")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

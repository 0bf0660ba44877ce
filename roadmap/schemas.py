"""
Ingestion Schemas - Validate collaborator records into domain snapshots.

The persistence layer supplies camelCase records (startDate,
predecessorId, capacityPerPeriod, ...). These pydantic models accept either
camelCase or snake_case keys and convert into the immutable domain entities.
"""
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from roadmap.domain.entities import (
    CapacityUnit,
    Constraint,
    ConstraintType,
    DependencyType,
    Hardness,
    Initiative,
    InitiativeConstraint,
    InitiativeDependency,
    InitiativeResourceRequirement,
    InitiativeStatus,
    InitiativeType,
    PeriodType,
    Priority,
    ResourcePool,
)
from roadmap.domain.exceptions import ValidationError
from roadmap.domain.services import ConsequenceContext


class RecordModel(BaseModel):
    """Base for collaborator records: camelCase aliases, unknown keys ignored."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# Records
# =============================================================================

class InitiativeRecord(RecordModel):
    """Initiative as stored by the persistence layer."""
    id: str = Field(..., min_length=1, description="Initiative identity")
    name: str = Field("", description="Display name")
    start_date: Optional[date] = Field(None, description="Planned start")
    end_date: Optional[date] = Field(None, description="Planned end")
    status: InitiativeStatus = Field(InitiativeStatus.PROPOSED, description="Delivery status")
    type: InitiativeType = Field(InitiativeType.NEW, description="Kind of change")
    priority: Priority = Field(Priority.SHOULD, description="MoSCoW priority")
    effort_estimate: Optional[float] = Field(None, ge=0, description="Person-days")
    scenario_id: Optional[str] = Field(None, description="Owning scenario")

    def to_entity(self) -> Initiative:
        return Initiative(
            id=self.id,
            name=self.name,
            start_date=self.start_date,
            end_date=self.end_date,
            status=self.status,
            type=self.type,
            priority=self.priority,
            effort_estimate=self.effort_estimate,
            scenario_id=self.scenario_id,
        )


class DependencyRecord(RecordModel):
    """Initiative dependency record."""
    id: Optional[str] = None
    predecessor_id: str = Field(..., min_length=1)
    successor_id: str = Field(..., min_length=1)
    dependency_type: DependencyType = Field(DependencyType.FINISH_TO_START)
    lag_days: int = Field(0, ge=0, description="Extra days beyond the base rule")

    def to_entity(self) -> InitiativeDependency:
        return InitiativeDependency(
            id=self.id,
            predecessor_id=self.predecessor_id,
            successor_id=self.successor_id,
            dependency_type=self.dependency_type,
            lag_days=self.lag_days,
        )


class ConstraintRecord(RecordModel):
    """Constraint definition record."""
    id: str = Field(..., min_length=1)
    name: str = ""
    description: Optional[str] = None
    type: ConstraintType = ConstraintType.OTHER
    hardness: Hardness = Hardness.SOFT
    effective_date: Optional[date] = None
    expiry_date: Optional[date] = None

    def to_entity(self) -> Constraint:
        return Constraint(
            id=self.id,
            name=self.name,
            type=self.type,
            hardness=self.hardness,
            effective_date=self.effective_date,
            expiry_date=self.expiry_date,
            description=self.description,
        )


class ConstraintLinkRecord(RecordModel):
    """Initiative <-> constraint link record."""
    id: Optional[str] = None
    initiative_id: str = Field(..., min_length=1)
    constraint_id: str = Field(..., min_length=1)

    def to_entity(self) -> InitiativeConstraint:
        return InitiativeConstraint(
            id=self.id,
            initiative_id=self.initiative_id,
            constraint_id=self.constraint_id,
        )


class ResourcePoolRecord(RecordModel):
    """Resource pool record; a missing capacity means unconstrained."""
    id: str = Field(..., min_length=1)
    name: str = ""
    description: Optional[str] = None
    capacity_per_period: Optional[float] = Field(None, ge=0)
    capacity_unit: CapacityUnit = CapacityUnit.FTE
    period_type: PeriodType = PeriodType.MONTH

    def to_entity(self) -> ResourcePool:
        return ResourcePool(
            id=self.id,
            name=self.name,
            capacity_per_period=self.capacity_per_period,
            capacity_unit=self.capacity_unit,
            period_type=self.period_type,
            description=self.description,
        )


class ResourceRequirementRecord(RecordModel):
    """Initiative resource requirement record."""
    id: Optional[str] = None
    initiative_id: str = Field(..., min_length=1)
    resource_pool_id: str = Field(..., min_length=1)
    effort_required: float = Field(0.0, ge=0)
    period_start: Optional[date] = None
    period_end: Optional[date] = None

    def to_entity(self) -> InitiativeResourceRequirement:
        return InitiativeResourceRequirement(
            id=self.id,
            initiative_id=self.initiative_id,
            resource_pool_id=self.resource_pool_id,
            effort_required=self.effort_required,
            period_start=self.period_start,
            period_end=self.period_end,
        )


# =============================================================================
# Context
# =============================================================================

class ContextPayload(RecordModel):
    """All collections needed for one evaluation."""
    initiatives: List[InitiativeRecord] = Field(default_factory=list)
    dependencies: List[DependencyRecord] = Field(default_factory=list)
    constraints: List[ConstraintRecord] = Field(default_factory=list)
    constraint_links: List[ConstraintLinkRecord] = Field(default_factory=list)
    requirements: List[ResourceRequirementRecord] = Field(default_factory=list)
    pools: List[ResourcePoolRecord] = Field(default_factory=list)
    period_type: Optional[PeriodType] = None

    def to_context(self) -> ConsequenceContext:
        """
        Build the engine context.

        Raises:
            InvalidDateRangeError: If an initiative or requirement window ends
                before it starts
        """
        return ConsequenceContext(
            initiatives=tuple(r.to_entity() for r in self.initiatives),
            dependencies=tuple(r.to_entity() for r in self.dependencies),
            constraints=tuple(r.to_entity() for r in self.constraints),
            constraint_links=tuple(r.to_entity() for r in self.constraint_links),
            requirements=tuple(r.to_entity() for r in self.requirements),
            pools=tuple(r.to_entity() for r in self.pools),
            period_type=self.period_type,
        )


def load_context(data: dict) -> ConsequenceContext:
    """
    Validate a raw mapping and build a ConsequenceContext.

    Args:
        data: Mapping with initiatives, dependencies, constraints,
            constraintLinks, requirements and pools

    Raises:
        ValidationError: If any record fails schema validation
        InvalidDateRangeError: If a date range is inverted
    """
    try:
        payload = ContextPayload.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ValidationError(location, first["msg"]) from e
    return payload.to_context()

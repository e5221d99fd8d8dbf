"""
Recommendation output models.

A recommendation is a tagged union over two disjoint cases, discriminated on
``kind``:

  ``RebuildSuggestion`` - a house-size bucket picked from family size.
  ``RepairSuggestion``  - a bill of materials drawn from the catalog for the
                          household's damage areas.

Use the ``Suggestion`` alias (or ``SuggestionAdapter``) wherever either case
may appear, e.g. when parsing a serialized suggestion back into a model.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class RebuildSuggestion(BaseModel):
    """Suggested standard house size for a REBUILD case.

    Attributes:
        household_id: Case this suggestion is for.
        model: Size bucket code, e.g. ``"SIZE-L"``.
        model_name: Display name of the bucket.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    kind: Literal["REBUILD"] = "REBUILD"
    household_id: str
    model: str
    model_name: str


class RepairLineItem(BaseModel):
    """One material line in a repair bill of materials.

    Attributes:
        material_id: Catalog material id.
        name: Material display name.
        category: Damage-area tag the line item serves.
        quantity: Units suggested for this household.
        unit: Unit of measure.
        covered: ``True`` when the material has no outstanding shortage, so
            the line can be filled entirely from donated stock.
    """

    model_config = ConfigDict(frozen=True)

    material_id: str
    name: str
    category: str
    quantity: int = Field(ge=0)
    unit: str = ""
    covered: bool = False


class RepairSuggestion(BaseModel):
    """Suggested repair bill of materials for a REPAIR case.

    Attributes:
        household_id: Case this suggestion is for.
        damage_areas: Damage-area tags the suggestion was built from.
        materials: Selected line items, in damage-area order.
        deterministic: ``False`` when quantities came from a random policy.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["REPAIR"] = "REPAIR"
    household_id: str
    damage_areas: list[str]
    materials: list[RepairLineItem] = []
    deterministic: bool = True


Suggestion = Annotated[
    Union[RebuildSuggestion, RepairSuggestion],
    Field(discriminator="kind"),
]

SuggestionAdapter: TypeAdapter[Suggestion] = TypeAdapter(Suggestion)

# menu_import/models/domain.py
"""
Domain models for menu import.

Field names are snake_case in Python and camelCase on the wire (model output,
persisted comparison data, API payloads).
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AllowedFileType = Literal["xlsx", "csv", "json", "md", "txt"]
ALLOWED_FILE_TYPES = ("xlsx", "csv", "json", "md", "txt")

OptionGroupType = Literal["single_select", "multi_select", "quantity_select"]
DiffAction = Literal["create", "update", "skip"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Extraction output


class ExtractedItem(CamelModel):
    name: str
    description: Optional[str] = None
    price: int = Field(default=0, ge=0)  # cents
    allergens: Optional[List[str]] = None
    category_name: str = ""
    existing_item_id: Optional[str] = None
    vat_group_code: Optional[str] = None


class ExtractedCategory(CamelModel):
    name: str
    description: Optional[str] = None
    existing_category_id: Optional[str] = None
    default_vat_group_code: Optional[str] = None
    items: List[ExtractedItem] = Field(default_factory=list)


class ExtractedOptionChoice(CamelModel):
    name: str
    price_modifier: int = 0  # cents


class ExtractedOptionGroup(CamelModel):
    name: str
    description: Optional[str] = None
    type: OptionGroupType = "single_select"
    is_required: bool = False
    choices: List[ExtractedOptionChoice] = Field(default_factory=list)
    applies_to: List[str] = Field(default_factory=list)


class ExtractedMenuData(CamelModel):
    categories: List[ExtractedCategory] = Field(default_factory=list)
    option_groups: List[ExtractedOptionGroup] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    @classmethod
    def empty(cls) -> "ExtractedMenuData":
        return cls(categories=[], option_groups=[], confidence=0.0)


# Existing menu snapshot


class ExistingItem(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    price: int = 0
    allergens: Optional[List[str]] = None
    vat_group_id: Optional[str] = None


class ExistingCategory(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    default_vat_group_id: Optional[str] = None
    items: List[ExistingItem] = Field(default_factory=list)


class ExistingOptionGroup(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    type: str = "single_select"


class ExistingMenuData(CamelModel):
    categories: List[ExistingCategory] = Field(default_factory=list)
    option_groups: List[ExistingOptionGroup] = Field(default_factory=list)


# Matching context handed to the model


class ExistingCategoryRef(CamelModel):
    id: str
    name: str


class ExistingItemRef(CamelModel):
    id: str
    name: str
    category_id: str


class VatGroupRef(CamelModel):
    id: str
    code: str
    name: str
    rate: int  # basis points, 700 = 7%


# Comparison output


class FieldChange(CamelModel):
    field: str
    old_value: Any = None
    new_value: Any = None


class ItemComparison(CamelModel):
    extracted: ExtractedItem
    existing_id: Optional[str] = None
    existing_name: Optional[str] = None
    action: DiffAction
    match_score: float
    changes: Optional[List[FieldChange]] = None


class CategoryComparison(CamelModel):
    extracted: ExtractedCategory
    existing_id: Optional[str] = None
    existing_name: Optional[str] = None
    action: DiffAction
    match_score: float
    changes: Optional[List[FieldChange]] = None
    items: List[ItemComparison] = Field(default_factory=list)


class OptionGroupComparison(CamelModel):
    extracted: ExtractedOptionGroup
    existing_id: Optional[str] = None
    existing_name: Optional[str] = None
    action: DiffAction
    match_score: float


class ComparisonSummary(CamelModel):
    total_categories: int = 0
    new_categories: int = 0
    updated_categories: int = 0
    total_items: int = 0
    new_items: int = 0
    updated_items: int = 0
    total_option_groups: int = 0
    new_option_groups: int = 0
    updated_option_groups: int = 0


class MenuComparisonData(CamelModel):
    extracted_menu: ExtractedMenuData
    categories: List[CategoryComparison] = Field(default_factory=list)
    option_groups: List[OptionGroupComparison] = Field(default_factory=list)
    summary: ComparisonSummary


# Jobs


class ImportJobStatus(str, Enum):
    PROCESSING = "PROCESSING"
    READY = "READY"
    FAILED = "FAILED"
    COMPLETED = "COMPLETED"


class ImportJobInfo(CamelModel):
    id: str
    store_id: str
    original_filename: str
    file_type: str
    status: ImportJobStatus
    error_message: Optional[str] = None
    comparison_data: Optional[MenuComparisonData] = None
    created_at: datetime


class UploadResult(CamelModel):
    job_id: str
    status: ImportJobStatus


class ApplySelection(CamelModel):
    type: Literal["category", "item", "optionGroup"]
    extracted_name: str
    action: Literal["apply", "skip"]
    matched_entity_id: Optional[str] = None


class AppliedCounts(CamelModel):
    categories: int = 0
    items: int = 0
    option_groups: int = 0


class ApplyResult(CamelModel):
    success: bool = True
    applied: AppliedCounts = Field(default_factory=AppliedCounts)

"""
MeterHQ - Utility Types
Enumerations for the tracked utilities and target period types, plus per-resource settings.
"""

from enum import Enum
from typing import Dict, Optional


class ResourceType(str, Enum):
    """Utility being measured. Values are the codes stored in the database."""
    ELECTRIC = 'el'
    WATER = 'water'


class PeriodType(str, Enum):
    """Period a consumption target applies to."""
    DAILY = 'daily'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'
    YEARLY = 'yearly'


RESOURCE_CONFIG: Dict[ResourceType, Dict[str, str]] = {
    ResourceType.ELECTRIC: {
        'label': 'El Tracker',
        'unit': 'kWh',
    },
    ResourceType.WATER: {
        'label': 'H2O Tracker',
        'unit': 'L',
    },
}


def get_unit(resource_type: ResourceType) -> str:
    """Return the measurement unit for a resource type."""
    return RESOURCE_CONFIG[resource_type]['unit']


def get_label(resource_type: ResourceType) -> str:
    """Return the display label for a resource type."""
    return RESOURCE_CONFIG[resource_type]['label']


def parse_resource(value: Optional[str]) -> ResourceType:
    """Resolve a resource code from user input. Anything but 'water' is electricity."""
    if value is not None and value.strip().lower() == ResourceType.WATER.value:
        return ResourceType.WATER
    return ResourceType.ELECTRIC

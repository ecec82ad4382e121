from dataclasses import dataclass
from types import MappingProxyType

@dataclass(frozen=True)
class CategoryProfile:
    name: str
    instructions: str
    recyclable: bool

_PROFILES = (
    CategoryProfile('Plastic', 'Rinse container and place in the recycling bin.', True),
    CategoryProfile('Paper', 'Flatten cardboard and place in the recycling bin.', True),
    CategoryProfile('Glass', 'Rinse container and place in the glass recycling bin.', True),
    CategoryProfile('Metal', 'Rinse container and place in the recycling bin.', True),
    CategoryProfile('Electronic', 'Take to an e-waste collection center.', False),
    CategoryProfile('Organic', 'Place in compost or green waste bin.', False),
    CategoryProfile('Hazardous',
                    'Take to a hazardous waste facility. DO NOT place in regular trash.', False),
    CategoryProfile('Mixed',
                    'Separate components if possible, otherwise place in general waste.', False),
)

CATEGORY_PROFILES = MappingProxyType({profile.name: profile for profile in _PROFILES})

CATEGORY_NAMES = [profile.name for profile in _PROFILES]

RECYCLABLE_CATEGORIES = frozenset(
    profile.name for profile in _PROFILES if profile.recyclable
)

MIXED = 'Mixed'

_LOOKUP = {name.lower(): profile for name, profile in CATEGORY_PROFILES.items()}

def get_profile(name: str) -> CategoryProfile:
    profile = _LOOKUP.get(name.strip().lower())
    if profile is None:
        raise KeyError(f"Unknown waste category: {name}")
    return profile

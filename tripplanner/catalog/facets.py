"""
Mapping of user preferences to MySwitzerland facet filters
"""

from typing import Dict, Tuple

from tripplanner.core.models import Preference

# preference -> (facet, facet filter value)
PREFERENCE_FACETS: Dict[Preference, Tuple[str, str]] = {
    Preference.SCENIC_VIEWS: ("views", "*"),
    Preference.SPORTS: ("sporttype", "*"),
    Preference.MUSEUMS: ("museumtype", "*"),
    Preference.HIKE: ("sporttype", "hike"),
    Preference.CHILDREN_FRIENDLY: ("suitablefortype", "family"),
    Preference.NIGHTLIFE: ("outgoingtype", "*"),
    Preference.SHOPPING: ("shoppingtype", "*"),
    Preference.WELLNESS: ("wellnesstype", "*"),
    Preference.FOODIE: ("experiencetype", "culinary"),
    Preference.URBAN: ("experiencetype", "urban"),
    Preference.GROUP: ("suitablefortype", "group"),
    Preference.INDIVIDUAL: ("suitablefortype", "individual"),
    Preference.COUPLE: ("suitablefortype", "couples"),
    Preference.WHEELCHAIR_ACCESSIBLE: ("wheelchairaccessibleclassifications", "*"),
    Preference.PUBLIC_TRANSPORT: ("reachabilitylocation", "closetopublictransport"),
}


def is_supported(preference: Preference) -> bool:
    """True if the catalog can filter on this preference"""
    return preference in PREFERENCE_FACETS


def facet_params(preferences) -> Dict[str, str]:
    """Query parameters filtering on every given preference"""
    pairs = [PREFERENCE_FACETS[p] for p in preferences if is_supported(p)]
    if not pairs:
        return {}
    return {
        "facets": ",".join(facet for facet, _ in pairs),
        "facet.filter": ",".join(f"{facet}:{value}" for facet, value in pairs),
    }

"""
Team registry: the league's clubs and their identifying/display attributes.

Season records are never stored here; they are derived from fixtures by
league.standings.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Team:
    """A league club."""
    id: str
    name: str
    abbreviation: str
    city: str
    stadium: str
    primary_color: str
    altitude: int  # metres above sea level
    status: str  # free-text note shown as a badge ("Altura", "Ascendido", ...)
    api_team_id: int  # API-Football team id


TEAMS: List[Team] = [
    Team("uni", "Universitario", "UNI", "Lima", "Monumental", "#FFFDD0", 250, "Campeón 2025", 2540),
    Team("ali", "Alianza Lima", "ALI", "Lima", "A. Villanueva", "#192745", 150, "", 2553),
    Team("cri", "Sporting Cristal", "CRI", "Lima", "A. Gallardo", "#5CBFEB", 150, "", 2546),
    Team("mel", "FBC Melgar", "MEL", "Arequipa", "UNSA", "#D71920", 2335, "Altura", 2554),
    Team("cus", "Cusco FC", "CUS", "Cusco", "Garcilaso", "#D4AF37", 3399, "Altura Extrema", 10013),
    Team("cie", "Cienciano", "CIE", "Cusco", "Garcilaso", "#CC0000", 3399, "Altura Extrema", 2562),
    Team("gar", "Dep. Garcilaso", "GAR", "Cusco", "Garcilaso", "#87CEEB", 3399, "Altura Extrema", 20960),
    Team("adt", "ADT", "ADT", "Tarma", "Unión Tarma", "#87CEEB", 3053, "Altura", 10492),
    Team("shu", "Sport Huancayo", "SHU", "Huancayo", "IPD Huancayo", "#CC0000", 3259, "Altura Extrema", 2555),
    Team("utc", "UTC", "UTC", "Cajamarca", "Héroes San Ramón", "#FFFDD0", 2750, "Altura", 2539),
    Team("com", "Comerciantes U.", "COM", "Cutervo", "Juan Maldonado", "#663399", 2637, "Altura", 2558),
    Team("fcc", "FC Cajamarca", "FCC", "Cajamarca", "Héroes San Ramón", "#FFA500", 2750, "Ascendido", 22543),
    Team("cha", "Los Chankas", "CHA", "Andahuaylas", "Los Chankas", "#800000", 2926, "Altura", 2572),
    Team("gra", "Atlético Grau", "GRA", "Piura", "Campeones del 36", "#FFFF00", 60, "Calor Extremo", 2564),
    Team("aas", "Alianza Atlético", "AAS", "Sullana", "Campeones del 36", "#FFFFFF", 60, "Calor Extremo", 2560),
    Team("sba", "Sport Boys", "SBA", "Callao", "Miguel Grau", "#FF69B4", 5, "", 2544),
    Team("jpi", "Juan Pablo II", "JPI", "Chongoyape", "Municipal", "#FFFF00", 200, "", 22479),
    Team("moq", "Dep. Moquegua", "MOQ", "Moquegua", "25 de Noviembre", "#008000", 1410, "Ascendido", 22489),
]

_TEAMS_BY_ID: Dict[str, Team] = {t.id: t for t in TEAMS}
_TEAMS_BY_API_ID: Dict[int, Team] = {t.api_team_id: t for t in TEAMS}


def get_team(team_id: str) -> Optional[Team]:
    """Look up a team by registry id (case-insensitive)."""
    if not team_id:
        return None
    return _TEAMS_BY_ID.get(team_id.strip().lower())


def team_by_api_id(api_team_id: int) -> Optional[Team]:
    return _TEAMS_BY_API_ID.get(api_team_id)


def status_badge(status: str) -> Optional[str]:
    """
    Badge key for a team's status note.

    Returns one of champion, altitude_extreme, altitude, heat, promoted, or None.
    """
    if not status:
        return None
    if status.startswith("Campeón"):
        return "champion"
    if "Altura Extrema" in status:
        return "altitude_extreme"
    if status == "Altura":
        return "altitude"
    if "Calor" in status:
        return "heat"
    if "Ascendido" in status:
        return "promoted"
    return None

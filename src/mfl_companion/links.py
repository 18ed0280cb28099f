from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

LEAGUE_PATH_PREFIXES = {
    "theleague": "/theleague/",
    "afl": "/afl-fantasy/",
}


def with_team_param(url: str, franchise_id: str, *, league: str = "theleague", site_host: str = "") -> str:
    """
    Add myteam=<id> to a same-site league link, unless the link already
    pins a team through myteam or franchise.
    """
    parts = urlsplit(url)
    if parts.netloc and parts.netloc != site_host:
        return url
    prefix = LEAGUE_PATH_PREFIXES.get(league, f"/{league}/")
    if not parts.path.startswith(prefix):
        return url

    query = parse_qsl(parts.query, keep_blank_values=True)
    if any(k in ("myteam", "franchise") for k, _ in query):
        return url
    query.append(("myteam", franchise_id))
    return urlunsplit(parts._replace(query=urlencode(query)))

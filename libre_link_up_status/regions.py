"""LibreLinkUp regional API hosts"""

from .exceptions import UnknownRegionError

LLU_API_ENDPOINTS = {
    'AE': 'api-ae.libreview.io',
    'AP': 'api-ap.libreview.io',
    'AU': 'api-au.libreview.io',
    'CA': 'api-ca.libreview.io',
    'CN': 'api-cn.myfreestyle.cn',
    'DE': 'api-de.libreview.io',
    'EU': 'api-eu.libreview.io',
    'EU2': 'api-eu2.libreview.io',
    'FR': 'api-fr.libreview.io',
    'JP': 'api-jp.libreview.io',
    'LA': 'api-la.libreview.io',
    'RU': 'api.libreview.ru',
    'US': 'api-us.libreview.io',
}


def resolve_region(region: str) -> str:
    """Return the API host for a region code (case-insensitive)"""
    code = (region or '').strip().upper()
    try:
        return LLU_API_ENDPOINTS[code]
    except KeyError:
        raise UnknownRegionError(region, LLU_API_ENDPOINTS.keys()) from None

"""Fixed peaks dataset shown when the Overpass peaks query fails.

Negative ids keep these apart from real OSM node ids.
"""

from __future__ import annotations

from pyalpsmap.models.features import Peak
from pyalpsmap.models.viewport import Viewport

FALLBACK_PEAKS: tuple[Peak, ...] = (
    Peak(id=-1, name="槍ヶ岳", lat=36.3420, lon=137.6476, elevation=3180),
    Peak(id=-2, name="奥穂高岳", lat=36.2893, lon=137.6479, elevation=3190),
    Peak(id=-3, name="北穂高岳", lat=36.3000, lon=137.6526, elevation=3106),
    Peak(id=-4, name="常念岳", lat=36.3254, lon=137.7274, elevation=2857),
    Peak(id=-5, name="乗鞍岳", lat=36.1064, lon=137.5536, elevation=3026),
    Peak(id=-6, name="立山", lat=36.5756, lon=137.6197, elevation=3015),
    Peak(id=-7, name="剱岳", lat=36.6233, lon=137.6167, elevation=2999),
    Peak(id=-8, name="白馬岳", lat=36.7585, lon=137.7588, elevation=2932),
    Peak(id=-9, name="御嶽山", lat=35.8930, lon=137.4806, elevation=3067),
    Peak(id=-10, name="富士山", lat=35.3606, lon=138.7274, elevation=3776),
)


def fallback_peaks_for(viewport: Viewport, peaks: tuple[Peak, ...] = FALLBACK_PEAKS) -> list[Peak]:
    """Fallback peaks inside *viewport*."""
    return [peak for peak in peaks if viewport.contains(peak.lat, peak.lon)]

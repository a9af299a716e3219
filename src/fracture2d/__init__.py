from .config import FractureConfig, JumpFloodConfig
from .datastructures import CellPolygon, VoronoiDiagram
from .errors import BeachlineError, ConfigError, Fracture2DError
from .fortune import FortuneVoronoi, compute_voronoi_2d
from .fracture import fracture_fortune, fracture_raster
from .jumpflood import JumpFlood
from .log import configure_logging
from .raster import RasterDiagram
from .relax import relax_diagram, relax_sites
from .sampling import sample_pixel_seeds, sample_sites

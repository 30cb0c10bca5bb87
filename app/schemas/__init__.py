# Schemas package (re-export feature modules for stable imports)
from .doctors.doctor import *
from .listing.listing import *
from .common.common import *

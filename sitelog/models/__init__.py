from .company import Company
from .material import Material, DailyMaterial
from .equipment import Equipment, WorkEquipment
from .work_detail import WorkDetail
from .weather import Weather
from .site import Site
from .max_rows import MaxRows

__all__ = [
    "Company",
    "Material",
    "DailyMaterial",
    "Equipment",
    "WorkEquipment",
    "WorkDetail",
    "Weather",
    "Site",
    "MaxRows",
]

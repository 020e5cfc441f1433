# mapparser/routes/__init__.py
from mapparser.routes.maps import create_maps_blueprint

__all__ = ["create_maps_blueprint"]

from .topology import Node, Element, triangle
from .geometry import TriangleGeometry
__all__=['Node','Element','triangle','TriangleGeometry']

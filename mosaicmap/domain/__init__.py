"""Domain layer: graph, grid and region models plus the services over them."""

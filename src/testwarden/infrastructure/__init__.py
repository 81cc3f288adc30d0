"""Infrastructure layer: astroid, filesystem, config files and reporters."""

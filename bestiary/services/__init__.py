"""Entity services: validated create / read / update / delete / clone / search."""

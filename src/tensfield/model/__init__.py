"""
The MODEL layer contains pure, immutable data structures.
It has NO knowledge of the renderer and performs no simulation.
"""

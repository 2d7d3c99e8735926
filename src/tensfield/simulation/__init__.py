"""
Simulation core of the TENS lab.

Modules
-------
stack       : Cumulative tissue layer boundaries
penetration : Effective field penetration depth
field_lines : Distorted field-line geometry between the electrodes
waveform    : Per-line opacity envelope for each stimulation mode
lesion      : Lesion index and lesion stages
hotspots    : Metal / thermal implant hotspots
activation  : Electric field, activation region and heatmap per electrode setup
risk        : Reference rule-based tissue risk classifier
comfort     : Comfort and sensory activation estimate
engine      : Memoized compute pass gated by feature flags
"""

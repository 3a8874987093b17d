"""Room lifecycle for Tune Race: the per-room game engine, the registry
that hands out room codes and reclaims empty rooms, and guess scoring.
"""

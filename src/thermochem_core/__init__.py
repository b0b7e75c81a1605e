"""Thermodynamic and transport properties of multi-species gas mixtures in JAX."""

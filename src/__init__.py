"""Cross-bilateral denoiser for Monte-Carlo rendered images.

Removes sampling noise from a rendered color image by averaging
neighboring pixels whose albedo, normal and depth guide values are
similar, preserving geometric and material edges.
"""

"""
Núcleo del motor de calificaciones: redondeo, agregaciones y corte preventivo.
"""

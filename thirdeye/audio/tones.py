"""
Tone Table
==========

Frecuencia (Hz) por distancia y categoría. Cada octava baja con la
distancia: near suena más agudo que far.
"""
from ..detection.geometry import Distance

TONE_FREQUENCIES = {
    Distance.NEAR: {
        'default': 880.0,  # A5
        'person': 660.0,   # E5
        'door': 587.0,     # D5
        'chair': 523.0,    # C5
    },
    Distance.MEDIUM: {
        'default': 440.0,  # A4
        'person': 330.0,   # E4
        'door': 293.0,     # D4
        'chair': 261.0,    # C4
    },
    Distance.FAR: {
        'default': 220.0,  # A3
        'person': 165.0,   # E3
        'door': 146.0,     # D3
        'chair': 130.0,    # C3
    },
}


def tone_frequency(label: str, distance: Distance) -> float:
    """Frecuencia para (label, distance); labels sin tono propio usan 'default'."""
    by_label = TONE_FREQUENCIES[Distance(distance)]
    return by_label.get(label, by_label['default'])

"""Floor-plan measurement: calibrate a drawing, trace it, report lengths and areas."""

__version__ = "0.1.0"

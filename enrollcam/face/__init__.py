"""Face building blocks (detector/collector/trainer/history).

Each piece is usable on its own; `enrollcam.video.pipeline` wires them into the
per-frame enrollment and recognition flow.
"""

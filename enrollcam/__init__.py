"""Live face enrollment and recognition demo.

A camera (or video) feed is turned into face samples, an LBPH recognizer is
trained once, and every later frame gets a running `score/average` overlay.
"""

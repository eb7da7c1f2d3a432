# Event-routing and plotting core for the robot console
# - bus:      MessageBus (topic pub/sub with per-handler fault isolation)
# - buffer:   CircularBuffer backing the live plots
# - polar:    PolarInputMapper for the drive dial
# - plotter:  LiveSeriesPlotter; trail: TrailMap; surface: SVG drawing surface

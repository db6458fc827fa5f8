"""vodstream - Adaptive segment-streaming playback client.

This package implements the client side of a video-on-demand player: a
playback session controller bound to one episode, progressive segment
prefetching, buffer health monitoring, throttled watch-progress checkpoints
and the resume prompt, plus a trace-driven simulated media engine to run
sessions without a real player.
"""

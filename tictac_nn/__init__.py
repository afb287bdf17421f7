"""
Tic-tac-toe policy network trained by self-play with hand-written backpropagation.
"""

__version__ = "0.1.0"

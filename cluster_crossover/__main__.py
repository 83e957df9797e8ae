"""
Allow running as: python -m cluster_crossover
"""
from .cli import main

if __name__ == '__main__':
    main()

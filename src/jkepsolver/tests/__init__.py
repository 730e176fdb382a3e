from .bisection import *

"""ReelCut - turn long-form videos into ranked short-form clips"""

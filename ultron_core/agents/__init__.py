"""控制循环（orchestrator）与回复清洗（sanitizer）。"""

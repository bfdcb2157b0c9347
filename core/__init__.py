"""
FlowBot - ядро: модели, хранилище, пулы задач
"""

"""Audio input and speech recognition adapters"""

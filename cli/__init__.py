"""pulseboard command line interface"""

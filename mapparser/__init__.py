"""MapParser – turns Google Maps route links into ordered waypoints."""

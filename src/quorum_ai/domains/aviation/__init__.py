"""Aviation underwriting domain: hull, pilot, maintenance, ground, liability, geopolitical."""

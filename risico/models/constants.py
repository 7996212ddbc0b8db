"""Constants shared by the RISICO state, formulas and kernels."""

# Missing-value sentinel shared with the I/O layer
NODATA = -9999.0

# Cold start dead fine fuel moisture (%)
DFFM_DEFAULT = 40.0

# Rain (mm) above which the wetting formula replaces drying
MAXRAIN = 0.1

# Snow cover above which fuel is considered saturated
SNOW_COVER_THRESHOLD = 0.001

# Validity of carried observations (s)
SNOW_SECONDS_VALIDITY = 5 * 24 * 3600
SATELLITE_DATA_SECONDS_VALIDITY = 240 * 3600

# Number of update steps a MSI observation stays valid
MSI_TTL_STEPS = 56.0

# Limits on the integration step (h)
MIN_DT_HOURS = 1.0
MAX_DT_HOURS = 72.0

# Latent heat of water vaporization used in low heating values (kJ/kg)
Q = 2442.0

# Physical domain of the meteorological drivers; values outside are clamped
TEMPERATURE_RANGE = (-90.0, 60.0)   # degC
HUMIDITY_RANGE = (0.0, 100.0)       # %
RAIN_MIN = 0.0                      # mm
WIND_SPEED_MIN = 0.0                # m/h
SNOW_COVER_MIN = 0.0

# Supabase schema SQL for reference
# Run this in Supabase SQL editor

"""CREATE TABLE settings (
  id uuid PRIMARY KEY,
  selected_caller text NOT NULL DEFAULT 'Mom' CHECK (selected_caller IN ('Mom','Dad','Yamini')),
  delay_seconds int NOT NULL DEFAULT 5 CHECK (delay_seconds > 0),
  ringtone text NOT NULL DEFAULT 'Classic iPhone' CHECK (ringtone IN ('Classic iPhone','Urgent','Vibration Only')),
  custom_ringtone_url text,
  created_at timestamptz DEFAULT now(),
  updated_at timestamptz DEFAULT now()
);

CREATE TABLE sessions (
  id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
  caller text NOT NULL,
  status text NOT NULL CHECK (status IN ('incoming','active','ended')) DEFAULT 'incoming',
  start_time timestamptz NOT NULL DEFAULT now(),
  ended_time timestamptz,
  ringtone_url text,
  -- ended_time is written exactly when the call ends
  CHECK ((status = 'ended') = (ended_time IS NOT NULL))
);

CREATE INDEX sessions_status_idx ON sessions (status);

-- Storage bucket for uploaded ringtones (public read)
INSERT INTO storage.buckets (id, name, public) VALUES ('ringtones', 'ringtones', true)
ON CONFLICT (id) DO NOTHING;
"""
